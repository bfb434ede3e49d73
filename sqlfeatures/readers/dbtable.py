#!/usr/bin/env python
"""Descriptors of annotation tables held in a SQL database.

A |DBTable| records where a table lives, which columns hold the
chromosome name and coordinates of each feature, whether the table carries
a UCSC `bin` column, and how each row is projected into a line of text for a
codec. Rows can be projected in two ways:

    1.  *By index range*: the columns from `start_col_index` through
        `end_col_index` (1-indexed, inclusive, as in SQL) are joined in
        table order. This is the usual case for tables that mirror a flat
        file format, e.g. a UCSC `refGene` table, whose columns are
        genePred columns.

    2.  *By column label*: a |ColumnMap| names the column that should
        appear at each position of the line. Use this for tables whose
        columns are in a different order than the target format, or which
        contain extra columns.

Examples
--------
Describe a UCSC `refGene` table in a local SQLite file::

    >>> table = DBTable("hg19.sqlite","refGene",format="genepred",bin_col="bin",
    >>>                 start_col_index=2)

Describe a BED-like table whose columns must be reordered::

    >>> cmap  = ColumnMap({ "chrom" : 0, "chromStart" : 1, "chromEnd" : 2,
    >>>                     "name" : 3, "score" : 4, "strand" : 5 })
    >>> table = DBTable("features.sqlite","my_features",format="bed",
    >>>                 start_col="chromStart",end_col="chromEnd",column_map=cmap)
"""
import re
import sys
from collections import namedtuple
from sqlfeatures.util.services.exceptions import ConfigurationError

_identifier = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def check_identifier(name,role):
    """Verify that `name` is a plain SQL identifier, optionally qualified
    by a schema or table name (e.g. `'txStart'` or `'hg19.refGene'`)

    Parameters
    ----------
    name : str
        Identifier to check

    role : str
        Description of what the identifier names, for error messages

    Returns
    -------
    str
        `name`

    Raises
    ------
    ConfigurationError
        if `name` is empty or contains characters other than letters, digits,
        and underscores
    """
    if not isinstance(name,str) or _identifier.match(name) is None:
        raise ConfigurationError("Invalid %s '%s'. Identifiers may contain only letters, digits, and underscores." % (role,name))

    return name


class ColumnMap(object):
    """Map column labels to positions in the line of text passed to a codec

    Parameters
    ----------
    mapping : dict
        Dictionary mapping column labels (as reported by the database driver)
        to 0-indexed positions in the output line. Labels are matched
        case-insensitively.

    Raises
    ------
    ConfigurationError
        if any position is not a non-negative integer
    """

    def __init__(self,mapping):
        if len(mapping) == 0:
            raise ConfigurationError("ColumnMap requires at least one column.")

        for label, pos in mapping.items():
            if not isinstance(pos,int) or pos < 0:
                raise ConfigurationError("Position of column '%s' must be a non-negative integer. Found '%s'." % (label,pos))

        self._mapping = dict(mapping)
        self.width    = max(self._mapping.values()) + 1

    def __repr__(self):
        return "<%s %s>" % (self.__class__.__name__,self._mapping)

    def __len__(self):
        return len(self._mapping)

    def __eq__(self,other):
        return isinstance(other,ColumnMap) and self._mapping == other._mapping

    def __hash__(self):
        return hash(tuple(sorted(self._mapping.items())))

    def resolve(self,keys):
        """Resolve column labels to physical column indexes in a result

        Parameters
        ----------
        keys : sequence of str
            Column labels of a result, in order, as given by
            :meth:`sqlalchemy.engine.CursorResult.keys`

        Returns
        -------
        list
            List of tuples of `(line position, 0-indexed column index)`, for
            each label present in the result. Labels absent from the result
            are omitted, leaving their positions empty.
        """
        indexes = { X.lower() : N for N, X in enumerate(keys) }
        pairs = []
        for label, pos in sorted(self._mapping.items(),key=lambda x: x[1]):
            idx = indexes.get(label.lower())
            if idx is not None:
                pairs.append((pos,idx))

        return pairs


_DBTableBase = namedtuple("_DBTableBase",["locator",
                                          "table_name",
                                          "format",
                                          "chrom_col",
                                          "start_col",
                                          "end_col",
                                          "bin_col",
                                          "start_col_index",
                                          "end_col_index",
                                          "column_map",
                                          "base_query",
                                         ])

class DBTable(_DBTableBase):
    """Immutable descriptor of a table of genomic features

    Parameters
    ----------
    locator : str
        Database locator passed to the connection manager: a SQLAlchemy URL,
        a SQLite filename, or `':memory:'`

    table_name : str
        Name of table

    format : str, optional
        File format that rows are projected into (e.g. `'bed'`, `'psl'`,
        `'genepred'`). Used to look up a codec. (Default: `'bed'`)

    chrom_col : str, optional
        Column holding chromosome names (Default: `'chrom'`)

    start_col : str, optional
        Column holding 0-indexed feature start coordinates (Default: `'txStart'`)

    end_col : str, optional
        Column holding half-open feature end coordinates (Default: `'txEnd'`)

    bin_col : str or None, optional
        Column holding UCSC bin numbers. If `None` (default), queries never
        use the bin index

    start_col_index : int, optional
        1-indexed position of first column projected into a line when no
        `column_map` is given (Default: 1)

    end_col_index : int, optional
        1-indexed position of last column projected, inclusive. Clipped to
        the width of each row. (Default: :data:`sys.maxsize`, all columns)

    column_map : |ColumnMap| or dict, optional
        If given, rows are projected by column label instead of by index range

    base_query : str or None, optional
        Query selecting candidate rows, to which overlap criteria are
        appended. (Default: `'SELECT * FROM <table_name>'`)

    Raises
    ------
    ConfigurationError
        if any identifier or index is invalid
    """

    __slots__ = ()

    def __new__(cls,locator,table_name,format="bed",chrom_col="chrom",
                start_col="txStart",end_col="txEnd",bin_col=None,
                start_col_index=1,end_col_index=sys.maxsize,
                column_map=None,base_query=None):
        if not locator:
            raise ConfigurationError("A database locator is required.")

        check_identifier(table_name,"table name")
        check_identifier(chrom_col,"chromosome column")
        check_identifier(start_col,"start column")
        check_identifier(end_col,"end column")
        if bin_col is not None:
            check_identifier(bin_col,"bin column")

        if not isinstance(start_col_index,int) or start_col_index < 1:
            raise ConfigurationError("start_col_index must be >= 1. Found '%s'." % start_col_index)
        if not isinstance(end_col_index,int) or end_col_index < start_col_index:
            raise ConfigurationError("end_col_index (%s) must be >= start_col_index (%s)." % (end_col_index,start_col_index))

        if column_map is not None and not isinstance(column_map,ColumnMap):
            column_map = ColumnMap(column_map)

        if base_query is None:
            base_query = "SELECT * FROM %s" % table_name
        else:
            base_query = base_query.strip().rstrip(";")
            if ";" in base_query:
                raise ConfigurationError("base_query must be a single statement.")

        return _DBTableBase.__new__(cls,locator,table_name,format,chrom_col,
                                    start_col,end_col,bin_col,start_col_index,
                                    end_col_index,column_map,base_query)

    def __repr__(self):
        return "<%s %s:%s format=%s>" % (self.__class__.__name__,self.locator,self.table_name,self.format)

    def is_binned(self):
        """Return `True` if the table has a UCSC bin column"""
        return self.bin_col is not None
