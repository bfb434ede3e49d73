#!/usr/bin/env python
"""This module contains classes that:

  - build :class:`argparse.ArgumentParser` objects for options shared by
    command-line scripts

  - parse those arguments into useful objects


Arguments are grouped into the following sets:

    ===========================================================   ======================================
    **Parameter/argument set**                                    **Parser building class**
    -----------------------------------------------------------   --------------------------------------
    Generic parameters (e.g. for error reporting, logging)        :class:`BaseParser`

    Database tables of genomic features                           :class:`TableParser`
    ===========================================================   ======================================


Example
-------
To use any of these in your own command line scripts, follow these steps:

  #. Import one or more of the classes above::

         >>> import argparse
         >>> from sqlfeatures.util.scriptlib.argparsers import TableParser


  #. Use the first function to create an :class:`~argparse.ArgumentParser`,
     and supply this object as a `parent` when you build your script's
     :py:class:`~argparse.ArgumentParser`::

         >>> tp = TableParser()
         >>> table_parser = tp.get_parser()
         >>> my_own_parser = argparse.ArgumentParser(parents=[table_parser])
         >>> my_own_parser.add_argument("region",type=str)

  #. Then, parse the arguments::

         >>> args = my_own_parser.parse_args()
         >>> source = tp.get_source_from_args(args)


See Also
--------
:py:mod:`argparse`
    Python documentation on argument parsing

:py:obj:`sqlfeatures.bin`
    Source code of command-line scripts, for further examples
"""
import argparse
import warnings
from sqlfeatures.genomics.genome import ReferenceGenome
from sqlfeatures.readers.dbtable import DBTable
from sqlfeatures.readers.sql import SQLFeatureSource, DEFAULT_FEATURE_WINDOW_SIZE
from sqlfeatures.util.io.openers import opener, NullWriter
from sqlfeatures.util.services.exceptions import ArgumentWarning, DataWarning,\
                                                 MalformedFileError, filterwarnings

#===============================================================================
# INDEX: Constants used in parsers below
#===============================================================================

_DEFAULT_TABLE_PARSER_TITLE = "database table options"

_DEFAULT_TABLE_PARSER_DESCRIPTION = \
"""Describe a table of genomic features. By default, columns follow UCSC
conventions (`chrom`, `txStart`, `txEnd`)."""


#===============================================================================
# INDEX: Base class for parsers
#===============================================================================

class Parser(object):
    """Base class for argument parser factories used below

    Parameters
    ----------
    groupname : str, optional
        Name of argument group. If not `None`, an argument group with
        the specified name will be created and added to the parser.
        If not, arguments will be in the main group.

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname=None,prefix="",disabled=None,**kwargs):
        self.prefix = prefix
        self.disabled = [] if disabled is None else disabled
        self.groupname = groupname

        # define in __init__ of subclass
        self.arguments = []

    def get_parser(self,parser=None,groupname=None,arglist=None,title=None,description=None,**kwargs):
        """Create and populate :class:`argparse.ArgumentParser` with arguments

        Parameters
        ----------
        parser : :class:`argparse.ArgumentParser` or None, optional
            If `None`, a new parser will be created, and arguments will be added
            to it. If not `None`, arguments will be added to `parser`.
            (Default: `None`)

        groupname : str or None, optional
            If `None`, default to `self.groupname`. If either `groupname`
            or `self.groupname` is not `None`, an option group with this name
            will be added to `parser`, and arguments added to that group
            instead of the main argument group of `parser`. In this case, `title`
            and `description` will be applied to the option group instead of to `parser`.

        arglist : list, optional
            If not `None`, arguments in this list will be added to `parser`.
            Otherwise, arguments will be taken from `self.arguments`.

            The list should be a list of tuples of ('argument_name',dict_of_options),
            where `argument_name` is a string, and `dict_of_options` a dictionary
            of keyword arguments to pass to :meth:`argparse.ArgumentParser.add_argument`.

        title : str, optional
            Optional title for parser

        description : str, optional
            Optional description for parser

        kwargs : keyword arguments
            Additional arguments passed during creation of :class:`argparse.ArgumentParser`

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        if groupname is None:
            groupname = self.groupname

        if parser is None:
            if groupname is None:
                parser = argparse.ArgumentParser(description=description,add_help=False,**kwargs)
            else:
                parser = argparse.ArgumentParser(add_help=False,**kwargs)

        addto = parser
        if groupname is not None:
            addto = parser.add_argument_group(title=title,description=description)

        arglist = self.arguments if arglist is None else arglist
        for arg_name, arg_opts in filter(lambda x: x[0] not in self.disabled,arglist):
            addto.add_argument("--%s%s" % (self.prefix,arg_name),**arg_opts)

        return parser


#===============================================================================
# INDEX: Database table parser
#===============================================================================

class TableParser(Parser):
    """Parser for options describing a database table of genomic features

    Parameters
    ----------
    groupname : str, optional
        Name of argument group (Default: `'table_options'`)

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname="table_options",prefix="",disabled=None):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.arguments = [
            ("db",           dict(type=str,required=True,metavar="locator",
                                  help="Database locator: a SQLAlchemy URL, or a SQLite filename")),
            ("table",        dict(type=str,required=True,
                                  help="Name of table to query")),
            ("format",       dict(type=str,default="bed",
                                  choices=("bed","psl","genepred","refflat","ucscgene"),
                                  help="Format into which rows are projected (Default: bed)")),
            ("chrom_col",    dict(type=str,default="chrom",
                                  help="Column of chromosome names (Default: chrom)")),
            ("start_col",    dict(type=str,default="txStart",
                                  help="Column of 0-indexed feature starts (Default: txStart)")),
            ("end_col",      dict(type=str,default="txEnd",
                                  help="Column of half-open feature ends (Default: txEnd)")),
            ("bin_col",      dict(type=str,default=None,
                                  help="Column of UCSC bin numbers, if any (Default: none)")),
            ("start_col_index", dict(type=int,default=1,
                                  help="First column (1-indexed) to project into each record (Default: 1)")),
            ("end_col_index",   dict(type=int,default=None,
                                  help="Last column (1-indexed, inclusive) to project into each record (Default: last column)")),
            ("column_map",   dict(type=str,default=None,nargs="+",metavar="label:position",
                                  help="Project rows by column label instead of by index. Give each "+\
                                       "column label with its 0-indexed position in the record, "+\
                                       "e.g. `chrom:0 chromStart:1 chromEnd:2`")),
            ("base_query",   dict(type=str,default=None,
                                  help="Query selecting candidate rows (Default: `SELECT * FROM table`)")),
            ("chrom_aliases",dict(type=str,default=None,metavar="filename",
                                  help="Tab-delimited file of chromosome aliases, with the name "+\
                                       "used in the table in the first column and the name to "+\
                                       "report in the second")),
            ("feature_window_size", dict(type=int,default=DEFAULT_FEATURE_WINDOW_SIZE,
                                  help="Largest query span, and row limit when listing whole table (Default: %s)" % DEFAULT_FEATURE_WINDOW_SIZE)),
        ]

    def get_parser(self,title=_DEFAULT_TABLE_PARSER_TITLE,description=_DEFAULT_TABLE_PARSER_DESCRIPTION):
        """Return an :py:class:`~argparse.ArgumentParser` for table options

        Parameters
        ----------
        title : str, optional
            title for option group (used in command-line help screen)

        description : str, optional
            description of parser (used in command-line help screen)

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        return Parser.get_parser(self,title=title,description=description)

    def get_table_from_args(self,args):
        """Build a |DBTable| from parsed arguments

        Parameters
        ----------
        args : :py:class:`argparse.Namespace`
            Namespace object from :py:meth:`argparse.ArgumentParser.parse_args`

        Returns
        -------
        |DBTable|
        """
        args = PrefixNamespaceWrapper(args,self.prefix)
        column_map = None
        if args.column_map is not None:
            column_map = {}
            for item in args.column_map:
                label, _, pos = item.rpartition(":")
                if label == "" or not pos.isdigit():
                    raise MalformedFileError("--%scolumn_map" % self.prefix,
                                             "Expected `label:position`, found '%s'" % item)
                column_map[label] = int(pos)

        kwargs = {}
        if args.end_col_index is not None:
            kwargs["end_col_index"] = args.end_col_index

        return DBTable(args.db,args.table,
                       format=args.format,
                       chrom_col=args.chrom_col,
                       start_col=args.start_col,
                       end_col=args.end_col,
                       bin_col=args.bin_col,
                       start_col_index=args.start_col_index,
                       column_map=column_map,
                       base_query=args.base_query,
                       **kwargs)

    def get_genome_from_args(self,args,printer=None):
        """Build a |ReferenceGenome| from a chromosome alias file, if one was given

        Parameters
        ----------
        args : :py:class:`argparse.Namespace`
            Namespace object from :py:meth:`argparse.ArgumentParser.parse_args`

        printer : file-like, optional
            Stream for logging (Default: |NullWriter|)

        Returns
        -------
        |ReferenceGenome| or None
        """
        printer = NullWriter() if printer is None else printer
        args = PrefixNamespaceWrapper(args,self.prefix)
        if args.chrom_aliases is None:
            return None

        printer.write("Opening chromosome aliases from %s ..." % args.chrom_aliases)
        aliases = {}
        with opener(args.chrom_aliases) as fh:
            for n, line in enumerate(fh):
                if line.startswith("#") or line.strip() == "":
                    continue

                items = line.rstrip("\n").split("\t")
                if len(items) < 2:
                    raise MalformedFileError(args.chrom_aliases,"Expected two columns",line_num=n+1)
                aliases[items[0]] = items[1]

        return ReferenceGenome(args.chrom_aliases,aliases=aliases)

    def get_source_from_args(self,args,printer=None,manager=None):
        """Open a |SQLFeatureSource| from parsed arguments

        Parameters
        ----------
        args : :py:class:`argparse.Namespace`
            Namespace object from :py:meth:`argparse.ArgumentParser.parse_args`

        printer : file-like, optional
            Stream for logging (Default: |NullWriter|)

        manager : |ConnectionManager|, optional
            Source of database connections

        Returns
        -------
        |SQLFeatureSource|
        """
        printer = NullWriter() if printer is None else printer
        table   = self.get_table_from_args(args)
        genome  = self.get_genome_from_args(args,printer=printer)
        source  = SQLFeatureSource.from_table(table,genome=genome,manager=manager,printer=printer)
        source.feature_window_size = PrefixNamespaceWrapper(args,self.prefix).feature_window_size
        return source


#===============================================================================
# INDEX: Generic options
#===============================================================================

class BaseParser(Parser):
    """Parser for basic options, such as warnings and logging

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname="base_options",prefix="",disabled=None):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.arguments = []

    def get_parser(self,title=None,description=None):
        """Return an :py:class:`~argparse.ArgumentParser`

        Parameters
        ----------
        title : str, optional
            title for option group (used in command-line help screen)

        description : str, optional
            description of parser (used in command-line help screen)

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        p = Parser.get_parser(self)
        g = p.add_argument_group(title="warning/error options")

        g.add_argument("-q","--quiet",dest="warnlevel",action="store_const",const=-1,
                       help="Suppress all warning messages. Cannot use with '-v'.")
        g.add_argument("-v","--verbose",dest="warnlevel",action="count",
                       help="Increase verbosity. With '-v', show every warning. With '-vv', turn warnings into exceptions. Cannot use with '-q'. (Default: show each type of warning once)")
        p.set_defaults(warnlevel=0)

        return p

    def get_base_ops_from_args(self,args):
        """Install warning filters according to the verbosity given in `args`

        Parameters
        ----------
        args : :py:class:`argparse.Namespace`
            Namespace object from :py:meth:`argparse.ArgumentParser.parse_args`

        Returns
        -------
        str
            Warning action applied
        """
        args = PrefixNamespaceWrapper(args,self.prefix)
        warnlevel = args.warnlevel
        actions = ["ignore",
                   "onceperfamily",
                   "always",
                   "error"]

        if warnlevel >= len(actions) - 1:
            warnlevel = len(actions) - 2
        try:
            action = actions[warnlevel+1]
        except IndexError:
            warnings.warn("Invalid warning level. Expected -1 to 2, found %s. Defaulting to `onceperfamily`." % warnlevel,
                          ArgumentWarning)
            action = actions[1]

        for type_, msg in SQLFEATURES_WARNINGS:
            filterwarnings(action,message=msg,category=type_)

        return action


SQLFEATURES_WARNINGS = [

    # readers.sql
    (DataWarning,"spans more than"),

]


#===============================================================================
# INDEX: Utility classes
#===============================================================================

class PrefixNamespaceWrapper(object):
    """Wrapper class to facilitate processing of :py:class:`~argparse.Namespace`
    objects created by parsers with non-empty ``prefix`` values, as if no
    prefix had been used.

    Attributes
    ----------
    namespace : :py:class:`~argparse.Namespace`
        Result of calling :py:meth:`argparse.ArgumentParser.parse_args`

    prefix : str
        Prefix that will be prepended to names of attributes of `self.namespace`
        before they are fetched
    """

    def __init__(self,namespace,prefix):
        self.namespace = namespace
        self.prefix = prefix

    def __getattr__(self,k):
        """Fetch an attribute from `self.namespace`, prepending `self.prefix` to `k`"""
        return getattr(self.namespace,"%s%s" % (self.prefix,k))
