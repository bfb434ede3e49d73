#!/usr/bin/env python
"""This module contains |SQLFeatureSource|, which fetches genomic features
overlapping a region of interest from a table in a SQL database.

.. contents::
   :local:

Summary
-------

Each row of the table is projected into a line of text in a known format
(e.g. `BED`_ or genePred) by a |RowDecoder|, and parsed into a feature by a
codec from :mod:`sqlfeatures.readers.codecs`. This lets one query engine
serve any table whose columns can be laid out as a flat-file record.

Queries use the UCSC bin index, if the table has one, to avoid scanning every
row on a chromosome (see :mod:`sqlfeatures.readers.planner`). Features are
returned lazily, as rows are fetched from the database.


Examples
--------
Open a source on a UCSC `refGene` table, and fetch features in a region::

    >>> from sqlfeatures.readers.dbtable import DBTable
    >>> table  = DBTable("hg19.sqlite","refGene",format="genepred",bin_col="bin",start_col_index=2)
    >>> with SQLFeatureSource.from_table(table) as source:
    >>>     for feature in source.query("chr1",1000000,1100000):
    >>>         pass # do something with each feature

Or, look up features overlapping a |GenomicSegment|::

    >>> source[GenomicSegment("chr1",1000000,1100000,"+")]
    [<Transcript segments=...>, ...]


Notes
-----
A source keeps at most one result open. Starting a new query closes the
previous result, whether or not it has been read to the end.
"""
import threading
from sqlalchemy import text
from sqlfeatures.readers.codecs import get_codec
from sqlfeatures.readers.dbmanager import default_manager
from sqlfeatures.readers.planner import QueryPlanner
from sqlfeatures.util.io.filters import AbstractReader
from sqlfeatures.util.io.openers import NullWriter
from sqlfeatures.util.services.exceptions import StorageError, ConfigurationError,\
                                                 DataWarning, warn

DEFAULT_FEATURE_WINDOW_SIZE = 1000000
"""Default maximum query span, and row limit for :meth:`SQLFeatureSource.iterator`"""


#===============================================================================
# INDEX: row decoding
#===============================================================================

class RowDecoder(object):
    """Project rows fetched from a table into lines of text, and decode them
    into features with a codec

    Parameters
    ----------
    table : |DBTable|
        Table description, giving either a |ColumnMap| or a range of columns

    codec : object
        Codec, with a method `decode(line)` returning a feature or `None`
    """

    def __init__(self,table,codec):
        self.table = table
        self.codec = codec

    def resolve(self,keys):
        """Resolve the table's |ColumnMap| against a result's column metadata

        Parameters
        ----------
        keys : sequence of str
            Column labels of the result

        Returns
        -------
        list or None
            Pairs of `(line position, column index)`, or `None` if the table
            projects rows by column range
        """
        if self.table.column_map is None:
            return None

        return self.table.column_map.resolve(() if keys is None else keys)

    def tokenize(self,row,pairs=None):
        """Convert a row to a list of strings

        Parameters
        ----------
        row : sequence
            Row fetched from the database

        pairs : list or None, optional
            Result of :meth:`resolve`. If `None`, the columns between
            `table.start_col_index` and `table.end_col_index` are used

        Returns
        -------
        list of str
            Tokens. `NULL` values become empty strings
        """
        if pairs is None:
            end = min(self.table.end_col_index,len(row))
            values = row[self.table.start_col_index - 1:end]
        else:
            values = [None]*self.table.column_map.width
            for pos, idx in pairs:
                values[pos] = row[idx]

        return ["" if X is None else str(X) for X in values]

    def decode(self,row,pairs=None):
        """Decode a row into a feature

        Parameters
        ----------
        row : sequence
            Row fetched from the database

        pairs : list or None, optional
            Result of :meth:`resolve`

        Returns
        -------
        object
            Feature returned by the codec, or `None` if the codec skipped the line

        Raises
        ------
        DecodeError
            if the codec cannot parse the line
        """
        return self.codec.decode("\t".join(self.tokenize(row,pairs)))


class FeatureResult(AbstractReader):
    """Lazy, single-pass iterator over features decoded from a database result.

    The underlying result is closed when it is exhausted, when a row fails to
    decode, or when :meth:`close` is called. Rows that the codec skips
    (e.g. comment lines) yield no feature.

    Parameters
    ----------
    cursor : iterator
        :class:`sqlalchemy.engine.CursorResult` of an executed query, or any
        iterator of rows

    decoder : |RowDecoder|
        Decoder for rows

    error : Exception subclass, optional
        Base class of driver exceptions, which are re-raised as |StorageError|
        (Default: :class:`Exception`)
    """

    def __init__(self,cursor,decoder,error=Exception):
        AbstractReader.__init__(self,cursor)
        self.decoder = decoder
        self.error   = error
        self.pairs   = decoder.resolve(cursor.keys() if hasattr(cursor,"keys") else None)

    def filter(self,row):
        return self.decoder.decode(row,self.pairs)

    def fetch(self):
        try:
            return next(self.stream)
        except StopIteration:
            raise
        except self.error as e:
            raise StorageError("Failed to fetch row: %s" % e) from e

    def close(self):
        """Close the underlying result. Safe to call repeatedly"""
        if self.closed:
            return

        try:
            AbstractReader.close(self)
        except self.error as e:
            raise StorageError("Failed to close result: %s" % e) from e


#===============================================================================
# INDEX: feature source
#===============================================================================

class SQLFeatureSource(object):
    """Fetch features that overlap regions of interest from a SQL table

    Parameters
    ----------
    table : |DBTable|
        Description of table

    codec : object
        Codec with a `decode(line)` method, e.g. from :func:`~sqlfeatures.readers.codecs.get_codec`

    manager : |ConnectionManager|, optional
        Source of database connections (Default: a process-wide manager)

    feature_window_size : int, optional
        Maximum span of a query, and maximum number of rows returned by
        :meth:`iterator` (Default: 1000000)

    printer : file-like, optional
        Stream for logging (Default: |NullWriter|)

    Attributes
    ----------
    table : |DBTable|
        Description of table

    decoder : |RowDecoder|
        Converts rows to features
    """

    def __init__(self,table,codec,manager=None,
                 feature_window_size=DEFAULT_FEATURE_WINDOW_SIZE,printer=None):
        self.table   = table
        self.decoder = RowDecoder(table,codec)
        self.manager = default_manager if manager is None else manager
        self.printer = NullWriter() if printer is None else printer
        self.feature_window_size = feature_window_size

        self._lock       = threading.Lock()
        self._planner    = None
        self._connection = None
        self._result     = None
        self._closed     = False

    @staticmethod
    def from_table(table,genome=None,manager=None,printer=None):
        """Create a |SQLFeatureSource|, choosing a codec from `table.format`

        Parameters
        ----------
        table : |DBTable|
            Description of table

        genome : |ReferenceGenome| or None, optional
            Reference genome, used to canonicalize chromosome names

        manager : |ConnectionManager|, optional
            Source of database connections

        printer : file-like, optional
            Stream for logging

        Returns
        -------
        |SQLFeatureSource|

        Raises
        ------
        ConfigurationError
            if no codec is available for the table's format
        """
        codec = get_codec(table.format,genome=genome)
        return SQLFeatureSource(table,codec,manager=manager,printer=printer)

    def __repr__(self):
        return "<%s table=%s closed=%s>" % (self.__class__.__name__,self.table,self._closed)

    def __enter__(self):
        return self

    def __exit__(self,exc_type,exc_value,traceback):
        self.close()

    @property
    def feature_window_size(self):
        """Maximum span of a query, and row limit of :meth:`iterator`"""
        return self._feature_window_size

    @feature_window_size.setter
    def feature_window_size(self,value):
        value = int(value)
        if value < 0:
            raise ConfigurationError("feature_window_size must be >= 0. Found %s." % value)
        self._feature_window_size = value

    @property
    def closed(self):
        return self._closed

    def _get_planner(self):
        """Open the connection and build query plans on first use"""
        with self._lock:
            if self._closed:
                raise StorageError("Cannot query %s: source is closed." % self.table.table_name)

            if self._planner is None:
                self._connection = self.manager.get_connection(self.table.locator)
                self._planner = QueryPlanner(self.table)
                self.printer.write("Prepared queries for %s (binned: %s)." % (self.table.table_name,
                                                                              self._planner.binned is not None))

            return self._planner

    def _execute(self,statement,parameters=None):
        # a failed execution releases its own cursor, so only successes return one
        try:
            return self._connection.execute(statement,{} if parameters is None else parameters)
        except self.manager.error as e:
            raise StorageError("Query on %s failed: %s" % (self.table.table_name,e)) from e

    def _open_result(self,statement,parameters=None):
        if self._result is not None:
            result, self._result = self._result, None
            result.close()

        cursor = self._execute(statement,parameters)
        self._result = FeatureResult(cursor,self.decoder,error=self.manager.error)
        return self._result

    def query(self,chrom,start,end):
        """Fetch features overlapping a region

        Parameters
        ----------
        chrom : str
            Chromosome name

        start : int
            0-indexed start of region

        end : int
            0-indexed, half-open end of region

        Returns
        -------
        |FeatureResult|
            Lazy iterator of features, sorted by start coordinate

        Raises
        ------
        StorageError
            if the source is closed, or if the database fails
        """
        if self._closed:
            raise StorageError("Cannot query %s: source is closed." % self.table.table_name)

        if start - end > self.feature_window_size:
            warn("Query %s:%s-%s spans more than %s positions. Returning no features." % (chrom,start,end,self.feature_window_size),
                 DataWarning)
            return FeatureResult(iter(()),self.decoder)

        planner = self._get_planner()
        plan, bins = planner.plan_for(start,end)
        return self._open_result(plan.statement,plan.parameters(chrom,start,end,bins))

    get_features = query

    def __getitem__(self,roi):
        """Return a list of features overlapping a |GenomicSegment|. If `roi`
        is stranded, only features on the same strand are returned.

        Parameters
        ----------
        roi : |GenomicSegment|
            Region of interest

        Returns
        -------
        list
        """
        return [X for X in self.query(roi.chrom,roi.start,roi.end) \
                if roi.strand == "." or X.strand == roi.strand]

    def iterator(self):
        """Fetch features from the start of the table, in order of start
        coordinate, up to `feature_window_size` rows. Useful for inspecting
        the content of a table.

        Returns
        -------
        |FeatureResult|
        """
        self._get_planner()
        sql = "%s ORDER BY %s LIMIT :limit" % (self.table.base_query,self.table.start_col)
        return self._open_result(text(sql),{ "limit" : self.feature_window_size })

    def get_sequence_names(self):
        """Return the names of all chromosomes in the table

        Returns
        -------
        list
            Each distinct chromosome name, once
        """
        self._get_planner()
        sql = "SELECT DISTINCT %s FROM %s" % (self.table.chrom_col,self.table.table_name)
        cursor = self._execute(text(sql))
        try:
            return [X[0] for X in cursor.fetchall()]
        except self.manager.error as e:
            raise StorageError("Could not fetch sequence names from %s: %s" % (self.table.table_name,e)) from e
        finally:
            cursor.close()

    def close(self):
        """Release query plans, any open result, and the database connection.
        Safe to call repeatedly, and before any query"""
        with self._lock:
            if self._closed:
                return

            self._closed = True
            result, self._result = self._result, None
            try:
                if result is not None:
                    result.close()
            finally:
                if self._planner is not None:
                    self._planner = None
                    self._connection = None
                    self.manager.close_connection(self.table.locator)
