#!/usr/bin/env python
"""Welcome to sqlfeatures!

This package fetches genomic features, such as genes, transcripts, or
alignments, from tables in SQL databases. Tables are indexed with the
hierarchical binning scheme of the `UCSC Genome Browser`_, so that queries
for features overlapping a small region need not scan a whole chromosome.
To this end, this package provides:

  #. Functions that compute UCSC bins for features and query ranges
     (see |genomics|)

  #. A query engine that projects rows of a table into a known file format
     and decodes them into feature objects (see |readers|)

  #. A command-line script to query tables (see |bin|), and tools to
     facilitate writing others (see |scriptlib|)


Package overview
----------------
sqlfeatures is divided into the following subpackages:

    ==============    =========================================================
    Package           Contents
    --------------    ---------------------------------------------------------
    |bin|             Command-line scripts
    |genomics|        Bin indexing, feature types, and reference genome context
    |readers|         Table descriptors, codecs, query planning, and the query engine
    |util|            Utilities (e.g. exceptions, stream filters, argument parsers)
    |test|            Unit and functional tests
    ==============    =========================================================

"""
__version__ = "0.1.0"

from sqlfeatures.genomics.roitools import GenomicSegment, SegmentChain, Transcript
from sqlfeatures.genomics.genome import ReferenceGenome
from sqlfeatures.genomics.binning import bin_from_range, calculate_bins

from sqlfeatures.readers.dbtable import DBTable, ColumnMap
from sqlfeatures.readers.dbmanager import ConnectionManager
from sqlfeatures.readers.codecs import get_codec
from sqlfeatures.readers.sql import SQLFeatureSource

from sqlfeatures.util.services.exceptions import formatwarning
