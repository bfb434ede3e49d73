#!/usr/bin/env python
"""Share database connections among feature sources.

A |ConnectionManager| keeps one `SQLAlchemy`_ engine and connection per
database locator, and hands the same connection to every
|SQLFeatureSource| that asks for it::

    >>> manager = ConnectionManager()
    >>> conn = manager.get_connection("annotations.sqlite")
    >>> conn is manager.get_connection("annotations.sqlite")
    True
    >>> manager.close_connection("annotations.sqlite")

Locators are `SQLAlchemy database URLs <https://docs.sqlalchemy.org/en/latest/core/engines.html#database-urls>`_,
such as ``mysql+pymysql://genome@genome-mysql.soe.ucsc.edu/hg19`` or
``postgresql://localhost/annotations``. As a convenience, a locator without
a scheme is taken to be the filename of a SQLite database, and ``:memory:``
an in-memory SQLite database. The driver for a URL's scheme must be
installed separately.
"""
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlfeatures.util.io.openers import NullWriter
from sqlfeatures.util.services.exceptions import StorageError


def locator_to_url(locator):
    """Convert a database locator to a SQLAlchemy URL

    Examples
    --------
    >>> locator_to_url("annotations.sqlite")
    'sqlite:///annotations.sqlite'

    >>> locator_to_url(":memory:")
    'sqlite://'

    >>> locator_to_url("postgresql://localhost/annotations")
    'postgresql://localhost/annotations'

    Parameters
    ----------
    locator : str
        Database URL or SQLite filename

    Returns
    -------
    str
    """
    if "://" in locator:
        return locator
    if locator == ":memory:":
        return "sqlite://"

    return "sqlite:///%s" % locator


class ConnectionManager(object):
    """Open, share, and close database connections, keyed by locator

    Parameters
    ----------
    engine_factory : callable, optional
        Function that receives a database URL and returns a SQLAlchemy
        engine (Default: :func:`sqlalchemy.create_engine`)

    printer : file-like, optional
        Stream for logging (Default: |NullWriter|)

    Attributes
    ----------
    error : Exception subclass
        Base class of exceptions raised by the database layer. These are
        re-raised as |StorageError|
    """

    error = SQLAlchemyError

    def __init__(self,engine_factory=create_engine,printer=None):
        self.engine_factory = engine_factory
        self.printer        = NullWriter() if printer is None else printer
        self._connections   = {}

    def __repr__(self):
        return "<%s open=%s>" % (self.__class__.__name__,sorted(self._connections))

    def __contains__(self,locator):
        return locator in self._connections

    def get_connection(self,locator):
        """Return the open connection for `locator`, opening it if necessary

        Parameters
        ----------
        locator : str
            Database URL or SQLite filename (see :func:`locator_to_url`)

        Returns
        -------
        :class:`sqlalchemy.engine.Connection`

        Raises
        ------
        StorageError
            if the connection cannot be opened
        """
        if locator in self._connections:
            return self._connections[locator][1]

        url = locator_to_url(locator)
        self.printer.write("Opening connection to %s ..." % url)
        engine = None
        try:
            engine = self.engine_factory(url)
            conn = engine.connect()
        except self.error as e:
            if engine is not None:
                engine.dispose()
            raise StorageError("Could not connect to '%s': %s" % (locator,e)) from e

        self._connections[locator] = (engine,conn)
        return conn

    def close_connection(self,locator):
        """Close the connection for `locator`, if it is open, and release its
        engine. Safe to call repeatedly

        Parameters
        ----------
        locator : str
            Database URL or SQLite filename

        Raises
        ------
        StorageError
            if the connection cannot be closed cleanly
        """
        engine, conn = self._connections.pop(locator,(None,None))
        if conn is None:
            return

        self.printer.write("Closing connection to %s ..." % locator_to_url(locator))
        try:
            conn.close()
        except self.error as e:
            raise StorageError("Could not close connection to '%s': %s" % (locator,e)) from e
        finally:
            engine.dispose()

    def close_all(self):
        """Close every open connection"""
        for locator in list(self._connections):
            self.close_connection(locator)


default_manager = ConnectionManager()
"""Process-wide |ConnectionManager|, used when no other is given"""
