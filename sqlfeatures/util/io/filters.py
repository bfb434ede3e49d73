#!/usr/bin/env python
"""Stream filters for the two ends of a query: rows coming out of a database
cursor, and progress messages going out to the terminal.

Readers:

    :class:`AbstractReader`
        Wraps any iterator of rows (a database result, an open file, a
        generator), converting each unit of input as it is consumed.
        Units that convert to `None` are dropped, and the wrapped stream is
        closed as soon as it is drained or a conversion fails. Subclass and
        override :py:meth:`~AbstractReader.filter`.

Writers:

    :class:`AbstractWriter`
        Formats each unit of output before writing it to a stream. Standard
        streams are never closed by a writer. Subclass and override
        :py:meth:`~AbstractWriter.filter`.

    :class:`ColorWriter`
        Colors output with ANSI codes if, and only if, the stream is a
        terminal

    :class:`NameDateWriter`
        Prepend program name, date, and time to each message. This is the
        progress printer used by command-line scripts in :data:`sqlfeatures`

And one convenience function:

    :func:`colored`
        Colorize text (via :func:`termcolor.colored`) if and only
        if color is supported by :obj:`sys.stderr`


Examples
--------
Convert rows fetched from a cursor, dropping rows without a name::

    >>> class NameReader(AbstractReader):
    >>>     def filter(self,row):
    >>>         return row[0] or None
    >>>
    >>> names = NameReader(cursor).readlines() # cursor is closed afterwards

Report progress on stderr::

    >>> printer = NameDateWriter("query_table")
    >>> printer.write("Querying chrI:1000-2000 ...")
    query_table [2016-02-05 17:41:08]: Querying chrI:1000-2000 ...
"""
import sys
import datetime
from abc import abstractmethod
from io import IOBase

import termcolor

if hasattr(sys.stderr,"isatty") and sys.stderr.isatty():
    colored = termcolor.colored
else:
    colored = lambda x, **kwargs: str(x)


#===============================================================================
# INDEX: readers
#===============================================================================

class AbstractReader(IOBase):
    """Abstract base class for readers of rows or lines

    Parameters
    ----------
    stream : iterator
        Source of data. If it has a `close()` method, that is called when the
        reader is closed

    Notes
    -----
    Readers are single-pass. Once closed, whether explicitly, by draining,
    or by an error in :meth:`filter`, they yield nothing further.
    """

    def __init__(self,stream):
        self.stream = stream

    def readable(self):
        return True

    def writable(self):
        return False

    def seekable(self):
        return False

    def fileno(self):
        raise IOError("%s has no file descriptor" % self.__class__.__name__)

    def fetch(self):
        """Return the next raw unit from `self.stream`. Override to translate
        errors raised by the stream"""
        return next(self.stream)

    def __iter__(self):
        return self

    def __next__(self):
        if self.closed:
            raise StopIteration

        while True:
            try:
                unit = self.fetch()
            except Exception:
                self.close()
                raise

            try:
                data = self.filter(unit)
            except Exception:
                self.close()
                raise

            if data is not None:
                return data

    def readlines(self):
        """Return all remaining converted units as a list"""
        return list(self)

    def close(self):
        """Close the reader and its stream. Safe to call repeatedly"""
        if self.closed:
            return

        IOBase.close(self)
        if hasattr(self.stream,"close"):
            self.stream.close()

    @abstractmethod
    def filter(self,data):
        """Convert one unit of input. Override this in subclasses

        Parameters
        ----------
        data : object
            Row, line, or other unit fetched from the stream

        Returns
        -------
        object
            Converted data, or `None` to skip the unit
        """
        pass


#===============================================================================
# INDEX: writers
#===============================================================================

class AbstractWriter(IOBase):
    """Abstract base class for writers, which format data before writing it

    Parameters
    ----------
    stream : file-like, open for writing
        Output stream
    """
    def __init__(self,stream):
        self.stream = stream

    def isatty(self):
        return hasattr(self.stream,"isatty") and self.stream.isatty()

    def readable(self):
        return False

    def writable(self):
        return True

    def seekable(self):
        return False

    def fileno(self):
        raise IOError("%s has no file descriptor" % self.__class__.__name__)

    def write(self,data):
        """Format `data` with :meth:`filter` and write it to `self.stream`"""
        self.stream.write(self.filter(data))

    def flush(self):
        self.stream.flush()

    def close(self):
        """Flush and close `self.stream`. Standard streams are flushed but left open"""
        if self.closed:
            return

        IOBase.close(self)
        if self.stream not in (sys.stdout,sys.stderr,sys.__stdout__,sys.__stderr__):
            self.stream.close()

    @abstractmethod
    def filter(self,data):
        """Format one unit of output. Override this in subclasses"""
        pass


class ColorWriter(AbstractWriter):
    """Writer that colors output only when writing to a terminal

    Parameters
    ----------
    stream : file-like, optional
        Stream to write to (Default: :obj:`sys.stderr`)
    """
    def __init__(self,stream=None):
        AbstractWriter.__init__(self,sys.stderr if stream is None else stream)
        if self.isatty():
            self.color = termcolor.colored

    def color(self,text,**kwargs):
        """Color `text` as :func:`termcolor.colored` would, if the stream is a
        terminal. Otherwise, return `text` unchanged"""
        return text


class NameDateWriter(ColorWriter):
    """Prepend program name, date, and time to each line of output

    Parameters
    ----------
    name : str
        Name to prepend, usually that of the running script

    line_delimiter : str, optional
        Appended to each message (Default: `'\\n'`)

    stream : file-like, optional
        Stream to write to (Default: :obj:`sys.stderr`)
    """

    def __init__(self,name,line_delimiter="\n",stream=None):
        ColorWriter.__init__(self,stream=stream)
        self.name = name
        self.delimiter = line_delimiter
        self.fmtstr = "%s %s%s %s%s: {2}%s" % (self.color(name,color="blue",attrs=["bold"]),
                                               self.color("[",color="blue",attrs=["bold"]),
                                               self.color("{0}",color="green"),
                                               self.color("{1}",color="green",attrs=["bold"]),
                                               self.color("]",color="blue",attrs=["bold"]),
                                               self.delimiter
                                              )

    def filter(self,line):
        now = datetime.datetime.now()
        return self.fmtstr.format(now.strftime("%Y-%m-%d"),
                                  now.strftime("%H:%M:%S"),
                                  line.strip(self.delimiter))
