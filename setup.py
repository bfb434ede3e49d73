#!/usr/bin/env python
"""Setup script for sqlfeatures. This is boilerplate, except that
command-line scripts in `sqlfeatures/bin` are detected automatically and
registered as console entry points.
"""
import os
from setuptools import setup, find_packages

sqlfeatures_version = "0.1.0"


#===============================================================================
# Package metadata
#===============================================================================

with open("README.rst") as f:
    long_description = f.read()

packages = find_packages(include=["sqlfeatures","sqlfeatures.*"])

install_requires = [
    "numpy>=1.9.4",
    "sqlalchemy>=1.4",
    "termcolor",
]

tests_require = [
    "pytest",
]


def get_scripts():
    """Detect command-line scripts automatically

    Returns
    -------
    list
        list of strings describing command-line scripts
    """
    binscripts = [
        X.replace(".py", "") for X in filter(
            lambda x: x.endswith(".py") and  "__init__" not in x,
            os.listdir(os.path.join("sqlfeatures",  "bin")),
        )
    ]
    return ["%s = sqlfeatures.bin.%s:main" % (X, X) for X in binscripts]


#===============================================================================
# Program body
#===============================================================================

setup(

    name             = "sqlfeatures",
    version          = sqlfeatures_version,
    author           = "The sqlfeatures developers",
    maintainer       = "The sqlfeatures developers",
    long_description =  long_description,
    long_description_content_type = "text/x-rst",

    description      = "Overlap queries of genomic feature tables in SQL databases, using UCSC binning",
    license          = "BSD 3-Clause",
    keywords         = "genomics annotation UCSC binning sql database",
    platforms        = "OS Independent",

    classifiers      = [
         'Development Status :: 4 - Beta',
         'Programming Language :: Python :: 3',

         'Topic :: Scientific/Engineering :: Bio-Informatics',
         'Topic :: Database',
         'Topic :: Software Development :: Libraries',

         'Intended Audience :: Science/Research',
         'Intended Audience :: Developers',

         'License :: OSI Approved :: BSD License',
         'Operating System :: POSIX',
         'Natural Language :: English',
    ],

    zip_safe = False,
    packages = packages,

    package_dir = {
        "sqlfeatures"  : "sqlfeatures",
    },

    entry_points = {
        "console_scripts" : get_scripts()
    },

    python_requires  = ">=3.6",
    install_requires = install_requires,
    extras_require   = { "test" : tests_require },

) # yapf: disable
