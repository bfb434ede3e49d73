#!/usr/bin/env python
"""Miscellaneous, general utilities useful for scripting

Package overview
================

    ===================================   ==============================================================
    **Subpackages**                       **Contents**
    -----------------------------------   --------------------------------------------------------------
    :py:obj:`~sqlfeatures.util.io`         Stream filters and file openers
    :py:obj:`~sqlfeatures.util.scriptlib`  Tools for writing command-line scripts that use :data:`sqlfeatures`
    :py:obj:`~sqlfeatures.util.services`   Exceptions, warnings, and warning filters
    ===================================   ==============================================================
"""
