#!/usr/bin/env python
"""Command-line scripts

    =========================   =============================================================================
    |query_table|                Fetch features overlapping regions of interest from a table in a SQL
                                 database, or list the chromosomes the table contains
    =========================   =============================================================================
"""
