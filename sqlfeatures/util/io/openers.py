#!/usr/bin/env python
"""Various wrappers and utilities for opening, closing, and writing files.

Important methods
-----------------
:py:func:`opener`
    Guesses whether a file is bzipped, gzipped, or uncompressed based upon
    file extension, opens it appropriately, and returns a file-like object.

:py:class:`NullWriter`
    Printer that writes to the system's null location. Used as the default
    `printer` throughout :data:`sqlfeatures`.

:py:func:`get_short_name`
    Basename of a file or module path, used to name script printers
"""
import os
import re
from sqlfeatures.util.io.filters import AbstractWriter


class NullWriter(AbstractWriter):
    """Writes to system-dependent null location.
    On Unix-like systems & OSX, this is typically /dev/null. On Windows, simply "nul"
    """

    def __init__(self):
        self.stream = open(os.devnull,"w")

    def filter(self,stream):
        return stream

    def __repr__(self):
        return "NullWriter()"

    def __str__(self):
        return self.__repr__()


def opener(filename,mode="r",**kwargs):
    """Open a file, detecting whether it is compressed or not, based upon
    its file extension:

       +----------------+------------------+
       | File ends with | Presumed to be   |
       +================+==================+
       | gz             |    gzipped       |
       +----------------+------------------+
       | bz2            |    bzipped       |
       +----------------+------------------+
       | anything else  |    uncompressed  |
       +----------------+------------------+

    Parameters
    ----------
    filename : str
        Name of file to open

    mode : str
        Mode in which to open file (e.g. "r", "a, "w"). Compressed files are
        opened in text mode unless `mode` contains "b"

    **kwargs
        Other parameters to pass to appropriate file opener
    """
    if filename.endswith(".gz"):
        import gzip
        call_func = gzip.open
    elif filename.endswith(".bz2"):
        import bz2
        call_func = bz2.open
    else:
        call_func = open

    if call_func is not open and "b" not in mode and "t" not in mode:
        mode += "t"

    return call_func(filename,mode,**kwargs)

def get_short_name(inpt,separator=os.path.sep,terminator=""):
    """Gives the basename of a filename or module name passed as a string.
    If the string doesn't match the pattern specified by the separator
    and terminator, it is returned unchanged.

    Examples
    --------
    >>> get_short_name("test")
    'test'

    >>> get_short_name("/home/jdoe/test.py",terminator=".py")
    'test'

    >>> get_short_name("sqlfeatures.bin.query_table",separator=r"\\.")
    'query_table'

    Parameters
    ----------
    inpt : str
        Input

    terminator : str
        File terminator (default: "")

    Returns
    -------
    str
    """
    if terminator and inpt.endswith(terminator):
        inpt = inpt[:-len(terminator)]

    match = re.search(r"([^%s]+)$" % separator,inpt)
    if match is None:
        return inpt

    return match.group(1)
