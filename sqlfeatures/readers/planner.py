#!/usr/bin/env python
"""Build and choose SQL queries for overlap lookups on a |DBTable|.

Two query plans are built for each table:

    1.  An *unbinned* plan, which selects rows on a chromosome whose
        features overlap a query range, using only the coordinate columns.

    2.  If the table has a UCSC `bin` column, a *binned* plan, which
        additionally restricts rows to a set of candidate bins (see
        :mod:`sqlfeatures.genomics.binning`). The bin column is usually
        indexed, so this avoids scanning the whole chromosome.

The binned plan has a fixed number (:data:`MAX_BINS`) of slots for bins, so
its text never changes and the database can cache the compiled statement.
Unused slots are bound to `NULL`, which matches nothing. Queries spanning
enough bins to fill every slot fall back to the unbinned plan.

In both plans, a row is selected if the feature starts inside the query
range, or starts to its left and ends at or after its start::

    chrom = :chrom AND ((start >= :qstart AND start < :qend) OR (start < :qstart AND end >= :qstart))

Plans are :func:`sqlalchemy.text` statements with named bind parameters
(`:chrom`, `:qstart`, `:qend`, and `:bin0` through `:bin19`). SQLAlchemy
renders these in the parameter style of whichever database driver is in
use, so the same plan runs on SQLite, MySQL, or PostgreSQL.
"""
from sqlalchemy import text
from sqlfeatures.genomics.binning import calculate_bins

MAX_BINS = 20
"""Number of bin slots in a binned query. Queries with this many or more
candidate bins use the unbinned plan"""


class QueryPlan(object):
    """Reusable overlap query on one table

    Attributes
    ----------
    sql : str
        Query text, with named bind parameters

    statement : :class:`sqlalchemy.sql.expression.TextClause`
        Statement compiled from `sql`, executed by |SQLFeatureSource|

    binned : bool
        Whether the query restricts results by bin

    num_slots : int
        Number of bin parameters in the query
    """

    def __init__(self,sql,binned=False,num_slots=0):
        self.sql       = sql
        self.statement = text(sql)
        self.binned    = binned
        self.num_slots = num_slots

    def __repr__(self):
        return "<%s binned=%s>" % (self.__class__.__name__,self.binned)

    def parameters(self,chrom,start,end,bins=()):
        """Build the bind parameters for an execution of this plan

        Parameters
        ----------
        chrom : str
            Chromosome name

        start : int
            0-indexed start of query range

        end : int
            0-indexed, half-open end of query range

        bins : sequence of int, optional
            Candidate bins. Ignored by unbinned plans. Padded with `None`
            to fill every slot.

        Returns
        -------
        dict
        """
        params = { "chrom" : chrom, "qstart" : start, "qend" : end }
        if not self.binned:
            return params

        bins = tuple(bins)
        if len(bins) > self.num_slots:
            raise ValueError("Plan has %s bin slots, but %s bins were given." % (self.num_slots,len(bins)))

        bins = bins + (None,)*(self.num_slots - len(bins))
        for n, bin_ in enumerate(bins):
            params["bin%s" % n] = bin_

        return params


class QueryPlanner(object):
    """Build the query plans for a table, and choose one for each query range

    Parameters
    ----------
    table : |DBTable|
        Table to query
    """

    def __init__(self,table):
        self.table = table
        where = "%s WHERE %s = :chrom AND ( (%s >= :qstart AND %s < :qend) OR (%s < :qstart AND %s >= :qstart) )" %\
                (table.base_query,
                 table.chrom_col,
                 table.start_col,
                 table.start_col,
                 table.start_col,
                 table.end_col)
        order = "ORDER BY %s" % table.start_col

        self.unbinned = QueryPlan("%s %s" % (where,order))
        self.binned   = None
        if table.bin_col is not None:
            slots = ",".join([":bin%s" % N for N in range(MAX_BINS)])
            self.binned = QueryPlan("%s AND %s IN (%s) %s" % (where,table.bin_col,slots,order),
                                    binned=True,
                                    num_slots=MAX_BINS)

    def __repr__(self):
        return "<%s table=%s binned=%s>" % (self.__class__.__name__,
                                            self.table.table_name,
                                            self.binned is not None)

    def plan_for(self,start,end):
        """Choose a plan for a query range

        Parameters
        ----------
        start : int
            0-indexed start of query range

        end : int
            0-indexed, half-open end of query range

        Returns
        -------
        |QueryPlan|
            Binned plan if the table has a bin column and the range has fewer
            than :data:`MAX_BINS` candidate bins. Otherwise, the unbinned plan

        tuple
            Sorted candidate bins to bind to the plan's slots. Empty for
            the unbinned plan
        """
        if self.binned is None:
            return self.unbinned, ()

        bins = calculate_bins(start,end)
        if len(bins) < MAX_BINS:
            return self.binned, tuple(sorted(bins))

        return self.unbinned, ()
