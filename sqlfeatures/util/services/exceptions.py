#!/usr/bin/env python
"""This module contains custom exception and warning classes, implements
a custom warning filter action, called `"onceperfamily"`, and replaces
warning output to improve legibility.

Contents:

.. contents::
   :local:

The `onceperfamily` action
--------------------------
`onceperfamily` groups warning messages by families of regular expressions,
and only prints the first warning instance that matches a given family's
regular expression. In contrast, Python's native `once` action prints any string
literal once, even if it matches the same regex as another warning already given.

To use this action, create the filter with :func:`filterwarnings`, and issue
warnings with :func:`warn`. Both are drop-in replacements for their
counterparts in :mod:`warnings`.


Exception types
---------------
|ConfigurationError|
    A table descriptor is malformed, or no codec exists for a requested
    format. Raised at construction or lookup time.

|StorageError|
    Wraps any failure raised by the backing store (connection, statement
    preparation, execution, or fetch)

|InvariantViolation|
    A caller broke a coordinate contract (e.g. negative coordinates passed
    to bin computation). Never caught inside :data:`sqlfeatures`.

|MalformedFileError|
    Raised when text cannot be parsed as expected, and execution must halt

|DecodeError|
    A codec could not convert a line of text into a feature


Warning types
-------------
|ArgumentWarning|
    Warning for command-line arguments that are nonsensical but recoverable

|FileFormatWarning|
    Warning for slightly malformed but usable records

|DataWarning|
    Warning raised when data has unexpected but recoverable values, or
    when an operation is skipped


See also
--------
:mod:`warnings`
    Warnings module
"""
import re
import warnings
import inspect
import linecache
import textwrap
from sqlfeatures.util.io.filters import colored

_wrapper = textwrap.TextWrapper(break_long_words=False,width=77)


#===============================================================================
# INDEX: Exception classes
#===============================================================================

class ConfigurationError(ValueError):
    """Raised when a table descriptor is malformed, or when no codec
    is available for a requested format and reference genome"""
    pass


class StorageError(IOError):
    """Raised when the backing store fails. The driver's own exception
    is available as `__cause__`
    """
    pass


class InvariantViolation(AssertionError):
    """Raised when a caller breaks a coordinate contract, for example by
    passing negative coordinates to bin calculations. This signals a
    programming error and is not meant to be caught.
    """
    pass


class MalformedFileError(Exception):
    """Exception class for when text cannot be parsed as it should be
    """

    def __init__(self,filename,message,line_num=None):
        """Create a |MalformedFileError|

        Parameters
        ----------
        filename : str
            Name of file or table causing problem

        message : str
            Message explaining how the input is malformed.

        line_num : int or None, optional
            Number of line or row causing problems
        """
        Exception.__init__(self,filename,message,line_num)
        self.filename = filename
        self.msg      = message
        self.line_num = line_num

    def __str__(self):
        if self.line_num is None:
            return "Error reading '%s': %s" % (self.filename, self.msg)
        else:
            return "Error reading '%s' at line %s: %s" % (self.filename, self.line_num, self.msg)


class DecodeError(MalformedFileError):
    """Raised by codecs when a line cannot be decoded into a feature.

    Attributes
    ----------
    line : str
        The offending line of text
    """

    def __init__(self,codec_name,message,line=None,line_num=None):
        MalformedFileError.__init__(self,codec_name,message,line_num=line_num)
        self.line = line


class ArgumentWarning(Warning):
    """Warning for nonsensical but recoverable combinations of command-line arguments"""
    pass


class FileFormatWarning(Warning):
    """Warning for slightly malformed but usable records"""
    pass


class DataWarning(Warning):
    """Warning for unexpected attributes of data.
    Raised when:

      - data has nonsensical, but recoverable values
      - an operation is skipped because its inputs are out of range
    """


#===============================================================================
# INDEX: Extensions to Python warnings
#===============================================================================

pl_once_registry = {}
"""Registry of `onceperfamily` warnings that have been seen in the current execution context"""

pl_filters       = []
"""Package-specific warnings filters, which allow additional actions compared to Python's"""

def filterwarnings(action,message="",category=Warning,module="",lineno=0,append=0):
    """Insert an entry into the warnings filter. Behaviors are as in :func:`warnings.filterwarnings`,
    except the additional action `'onceperfamily'` can be used to allow one warning per `family`
    of messages, specified by a regex.

    Parameters
    ----------
    action : str
        How the warning should be filtered. Acceptable values are "error",
        "ignore", "always", "default", 'module", "once", and "onceperfamily"

    message : str, optional
        str that can be compiled to a regex, used to detect warnings. If "onceperfamily"
        is chosen, only the first warning to give a string that matches the regex
        will be shown. (Default: `""`, match any message)

    category : Warning or subclass, optional
        Type of warning. (Default: :class:`Warning`)

    module : str, optional
        str that can be compiled to a regex, limiting the warning behavior to modules
        that match that regex. (Default: `""`, match all modules)

    lineno : int, optional
        If 0 (default), match all warnings regardless of line number.

    append : int, optional
        If 1, add warning to end of filter list. If 0 (default), insert warning at
        beginning of filters list.
    """
    if action == "onceperfamily":
        tup = (action,re.compile(message,re.I),category,re.compile(module),lineno)
        if tup in pl_filters:
            return

        if append == 1:
            pl_filters.append(tup)
        else:
            pl_filters.insert(0,tup)
    else:
        warnings.filterwarnings(action,message=message,
                                category=category,module=module,
                                lineno=lineno,append=append)

def warn(message,category=None,stacklevel=1):
    """Issue a non-essential warning to users, honoring `onceperfamily` filters

    Parameters
    ----------
    message : str
        Message

    category: :class:`Warning`, or subclass, optional
        Type of warning (Default: :class:`UserWarning`)

    stacklevel : int
        Frame from which the warning is reported (Default: 1, the caller)
    """
    if category is None:
        category = UserWarning

    _, filename, lineno, _, _, _ = inspect.stack()[stacklevel]
    warn_explicit(message,category,filename,lineno,module=filename)

def warn_explicit(message,category,filename,lineno,module=None,registry=None,module_globals=None):
    """Low-level interface to issue warnings, honoring `onceperfamily` filters

    Parameters
    ----------
    message : str
        Message

    category: :class:`Warning`, or subclass
        Type of warning

    filename : str
        Name of module from which warning is issued

    lineno : int
        Line in module at which warning is called

    module : str, optional
        Module name

    registry : dict, optional
        Registry of ignore filters (see :func:`warnings.warn_explicit`)

    module_globals : dict, optional
        Dictionary of module-level variables
    """
    if module is None:
        frame = inspect.currentframe()
        try:
            module = inspect.getmodule(frame.f_back.f_code).__name__
        finally:
            del frame

    for _, pat, filter_category, mod, filter_line in pl_filters:
        if pat.match(message) and issubclass(category,filter_category) and\
           mod.match(module) and\
           (filter_line == 0 or filter_line == lineno):

            tup = (pat.pattern,filter_category,mod,filter_line)
            if tup in pl_once_registry:
                return

            pl_once_registry[tup] = 1
            break

    warnings.warn_explicit(message,category,filename,lineno,
                           module=module,registry=registry,
                           module_globals=module_globals)


def formatwarning(message,category,filename,lineno,file=None,line=None):
    """Colorize warnings for readability. Overrides :func:`warnings.formatwarning`

    Parameters
    ----------
    message : str
        Warning message

    category : Warning
        Class (not instance) of warning

    filename : str
        Name of file calling warning

    lineno : int
        Line in file calling warning

    file : file-like, optional
        Ignored

    line : str, optional
        Text of line in file calling warning. If `None`, lines surrounding
        `lineno` of `filename` are shown

    Returns
    -------
    str
        Pretty-printed warning message
    """
    sep     = colored("-"*75,color="cyan")
    message = str(message)
    if "\n" not in message:
        message = _wrapper.fill(message)

    message = colored(message,color="white",attrs=["bold"])
    name    = colored(category.__name__,color="cyan",attrs=["bold"])

    if line is None:
        fmtstr = "{0: >%ss} {1}" % len(str(lineno+3))
        lines  = []
        for x in range(max(0,lineno-2),lineno+3):
            tmpline = linecache.getline(filename,x).strip("\n")
            if tmpline:
                attrs = ["bold"] if x == lineno else []
                lines.append(fmtstr.format(colored(x,color="green",attrs=attrs),
                                           colored(tmpline,attrs=attrs)))
        line = "\n".join(lines)

    location = "in %s, line %s:" % (colored(filename,color="cyan"),lineno)

    return "\n".join([sep,name,message,location,"",line,"",sep,""])


warnings.formatwarning = formatwarning
