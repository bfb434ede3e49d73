#!/usr/bin/env python
"""
Package overview
================

This package fetches features from tables in SQL databases. Rows are
projected into lines of a known annotation format, and decoded into
features whose coordinates are 0-indexed and half-open, in keeping with
Python conventions.

    ==========================================    =======================================
    **Module**                                    **Contents**
    ------------------------------------------    ---------------------------------------
    :py:mod:`sqlfeatures.readers.sql`             Query engine, row decoder, and lazy results
    :py:mod:`sqlfeatures.readers.planner`         Binned and unbinned overlap queries
    :py:mod:`sqlfeatures.readers.codecs`          Decoders for `BED`_, `PSL`_, and genePred records
    :py:mod:`sqlfeatures.readers.dbtable`         Descriptions of tables
    :py:mod:`sqlfeatures.readers.dbmanager`       Shared database connections
    ==========================================    =======================================
"""
