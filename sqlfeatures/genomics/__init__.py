#!/usr/bin/env python
"""This package contains object types and functions that describe genomic features
and the indexes used to find them.

Package overview
================

    =============================================  ==================================================================
    **Submodule**                                   **Description**
    ---------------------------------------------  ------------------------------------------------------------------
    :py:mod:`~sqlfeatures.genomics.binning`          UCSC hierarchical bin indexing

    :py:mod:`~sqlfeatures.genomics.genome`           Reference genome context, such as chromosome aliases

    :py:mod:`~sqlfeatures.genomics.roitools`         Objects that represent genomic features,
                                                     such as genes or transcripts
    =============================================  ==================================================================
"""
