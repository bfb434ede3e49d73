#!/usr/bin/env python
"""This module implements the hierarchical bin indexing scheme used by the
`UCSC Genome Browser`_ to speed up overlap queries over tables of genomic features.

.. contents::
   :local:

Summary
-------

Coordinate space is divided into a hierarchy of nested, fixed-size buckets.
The finest level has buckets of 128 kb (``2**17``); each coarser level
groups 8 buckets from the level below. Each feature is assigned to the
smallest bucket that wholly contains it, and each level is given a disjoint
range of bin ids, so that a single integer column can index the table.

To find features overlapping a region of interest, a query need only examine
rows whose bin is one of the (few) bins that could hold such a feature.
:func:`calculate_bins` enumerates these.

Features ending beyond 512 Mb use the *extended* numbering, which adds a
coarser level and shifts all ids by :data:`BIN_OFFSET_OLD_TO_EXTENDED`,
keeping extended ids disjoint from standard ones.


Module contents
---------------

.. autosummary::

   bin_from_range
   bins_from_ranges
   calculate_bins


Examples
--------
Find the bin for a feature, and the candidate bins for a query::

    >>> bin_from_range(0,1000)
    585

    >>> sorted(calculate_bins(0,1000))
    [0, 1, 9, 73, 585]


See also
--------
`Bin indexing system <http://genomewiki.ucsc.edu/index.php/Bin_indexing_system>`_
    Description at the UCSC Genome Wiki

Kent WJ et al. (2002) The Human Genome Browser at UCSC. Genome Res. 12: 996-1006
    Original description of the scheme
"""
import numpy
from sqlfeatures.util.services.exceptions import InvariantViolation

#===============================================================================
# INDEX: constants
#===============================================================================

BIN_FIRST_SHIFT = 17
"""How much to shift to get to the finest bin"""

BIN_NEXT_SHIFT = 3
"""How much to shift to get to the next larger bin"""

SMALLEST_BIN_SIZE = 1 << BIN_FIRST_SHIFT
"""Width, in nucleotides, of bins at the finest level (128 kb)"""

BINRANGE_MAXEND_512M = 512 * 1024 * 1024
"""Largest end coordinate addressable by standard (non-extended) bin numbering"""

BIN_OFFSET_OLD_TO_EXTENDED = 4681
"""Added to every bin id in extended numbering, so that extended ids never
collide with standard ones"""

BIN_OFFSETS_EXTENDED = (4096 + 512 + 64 + 8 + 1,
                        512 + 64 + 8 + 1,
                        64 + 8 + 1,
                        8 + 1,
                        1,
                        0)
"""Offsets of each level of the hierarchy, finest first, in extended numbering"""

BIN_OFFSETS = BIN_OFFSETS_EXTENDED[1:]
"""Offsets of each level of the hierarchy, finest first, in standard numbering"""


#===============================================================================
# INDEX: functions
#===============================================================================

def bin_from_range(start,end):
    """Return the bin of the smallest bucket that wholly contains the
    half-open interval [`start`, `end`)

    Parameters
    ----------
    start : int
        0-indexed leftmost position of feature

    end : int
        0-indexed, half-open rightmost position of feature

    Returns
    -------
    int
        Bin id. Ids computed for features ending past 512 Mb use extended
        numbering.

    Raises
    ------
    InvariantViolation
        if `start` or `end` is negative
    """
    if start < 0 or end < 0:
        raise InvariantViolation("start %s, end %s must be >= 0" % (start,end))

    extended = end > BINRANGE_MAXEND_512M
    offsets  = BIN_OFFSETS_EXTENDED if extended else BIN_OFFSETS

    start_bin = start >> BIN_FIRST_SHIFT
    end_bin   = (end - 1) >> BIN_FIRST_SHIFT
    for offset in offsets:
        if start_bin == end_bin:
            if extended:
                return BIN_OFFSET_OLD_TO_EXTENDED + offset + start_bin
            return offset + start_bin

        start_bin >>= BIN_NEXT_SHIFT
        end_bin   >>= BIN_NEXT_SHIFT

    return -1

def bins_from_ranges(starts,ends):
    """Vectorized version of :func:`bin_from_range`

    Parameters
    ----------
    starts : array-like of int
        0-indexed leftmost positions of features

    ends : array-like of int
        0-indexed, half-open rightmost positions of features

    Returns
    -------
    :class:`numpy.ndarray`
        Bin id of each interval, with `-1` for intervals too large for the
        hierarchy

    Raises
    ------
    InvariantViolation
        if any coordinate is negative
    """
    starts = numpy.asarray(starts,dtype=numpy.int64)
    ends   = numpy.asarray(ends,dtype=numpy.int64)
    if (starts < 0).any() or (ends < 0).any():
        raise InvariantViolation("Coordinates must be >= 0")

    extended  = ends > BINRANGE_MAXEND_512M
    start_bin = starts >> BIN_FIRST_SHIFT
    end_bin   = (ends - 1) >> BIN_FIRST_SHIFT
    bins      = numpy.full(starts.shape,-1,dtype=numpy.int64)
    unplaced  = numpy.ones(starts.shape,dtype=bool)

    # extended intervals walk one level further than standard ones; padding
    # standard offsets at the coarse end keeps both walks in step
    std_offsets = BIN_OFFSETS + (None,)
    for std_offset, ext_offset in zip(std_offsets,BIN_OFFSETS_EXTENDED):
        fits = unplaced & (start_bin == end_bin)
        if std_offset is not None:
            std = fits & ~extended
            bins[std] = std_offset + start_bin[std]

        ext = fits & extended
        bins[ext] = BIN_OFFSET_OLD_TO_EXTENDED + ext_offset + start_bin[ext]

        if std_offset is None:
            unplaced &= extended
        unplaced &= ~fits
        start_bin >>= BIN_NEXT_SHIFT
        end_bin   >>= BIN_NEXT_SHIFT

    return bins

def calculate_bins(start,end):
    """Return every bin that could hold a feature overlapping [`start`, `end`)

    A feature's bin depends on its own span, not on the query's, so at each
    level of the hierarchy a window the width of that level's buckets is swept
    across the query. The sweep starts half a window to the left of `start`,
    so that features beginning before the query are found too.

    Parameters
    ----------
    start : int
        0-indexed leftmost position of query

    end : int
        0-indexed, half-open rightmost position of query

    Returns
    -------
    set
        Set of bin ids, always including ``bin_from_range(start,end)``

    Raises
    ------
    InvariantViolation
        if `start` or `end` is negative, or if the sweep overflows
    """
    bins = set()
    sweep_length = SMALLEST_BIN_SIZE
    while sweep_length < BINRANGE_MAXEND_512M:
        sweep_start   = max(start - sweep_length // 2,0)
        window_starts = numpy.arange(sweep_start,end,sweep_length,dtype=numpy.int64)
        window_ends   = window_starts + sweep_length
        if (window_ends < 0).any():
            raise InvariantViolation("Overflow while calculating bins for %s-%s" % (start,end))

        bins.update(bins_from_ranges(window_starts,window_ends).tolist())
        sweep_length *= 2

    bins.add(bin_from_range(start,end))
    return bins
