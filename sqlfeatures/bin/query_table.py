#!/usr/bin/env python
"""Fetch genomic features overlapping one or more regions from a table in a
SQL database, and write them to standard output as a tab-delimited table
with one feature per line.

Rows of the table are projected into a known file format (`BED`_, `PSL`_,
or a UCSC genePred variant) and decoded into features. If the table has a
UCSC `bin` column, queries of small regions use it to avoid scanning the
whole chromosome.

If no region is given, features are listed from the start of the table, up
to ``--feature_window_size`` rows.

Examples:

.. code-block:: shell

   # list features overlapping two regions of a UCSC refGene table
   $ query_table --db hg19.sqlite --table refGene --format genepred \\
                 --bin_col bin --start_col_index 2 \\
                 chr1:1000000-1100000 chr2:50000-60000

   # list the chromosomes present in a BED-like table
   $ query_table --db features.sqlite --table my_features \\
                 --start_col chromStart --end_col chromEnd --sequence_names


Output columns
--------------
    region
        Query region, as given on the command line

    name
        Feature name

    chrom, start, end, strand
        Coordinates of the feature's outermost bounds, 0-indexed and half-open

    segments
        Feature blocks, as `start-end` pairs joined by `^`
"""
import sys
import re
import argparse
import inspect
import warnings
from sqlfeatures.util.scriptlib.argparsers import TableParser, BaseParser
from sqlfeatures.util.io.filters import NameDateWriter
from sqlfeatures.util.io.openers import get_short_name
from sqlfeatures.util.scriptlib.help_formatters import format_module_docstring

warnings.simplefilter("once")
printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))

regionpat = re.compile(r"^([^:]+):([0-9,]+)-([0-9,]+)$")

_HEADER = ["region","name","chrom","start","end","strand","segments"]


def parse_region(inp):
    """Parse a region of the form `chrom:start-end`

    Parameters
    ----------
    inp : str
        Region. Commas in coordinates are ignored

    Returns
    -------
    tuple
        `(chrom, start, end)`

    Raises
    ------
    argparse.ArgumentTypeError
        if `inp` is not a region
    """
    match = regionpat.search(inp.strip())
    if match is None:
        raise argparse.ArgumentTypeError("Region must be given as `chrom:start-end`. Found '%s'." % inp)

    chrom, start, end = match.groups()
    return chrom, int(start.replace(",","")), int(end.replace(",",""))

def format_feature(region,feature):
    """Format a feature as a line of output

    Parameters
    ----------
    region : str
        Query region

    feature : |SegmentChain|
        Feature to format

    Returns
    -------
    str
    """
    span = feature.spanning_segment
    segments = "^".join(["%s-%s" % (X.start,X.end) for X in feature])
    return "\t".join([region,feature.get_name(),span.chrom,str(span.start),
                      str(span.end),span.strand,segments]) + "\n"

def main(argv=sys.argv[1:]):
    """Command-line program

    Parameters
    ----------
    argv : list, optional
        A list of command-line arguments, which will be processed
        as if the script were called from the command line if
        :py:func:`main` is called directly.

        Default: sys.argv[1:] (actually command-line arguments)
    """
    tp = TableParser()
    table_parser = tp.get_parser()

    bp = BaseParser()
    base_parser = bp.get_parser()

    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     parents=[base_parser,table_parser])
    parser.add_argument("--sequence_names",default=False,action="store_true",
                        help="List chromosomes present in table, instead of features")
    parser.add_argument("regions",type=parse_region,nargs="*",metavar="chrom:start-end",
                        help="Regions to query. If none, list features from start of table")

    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)

    printer.write("params: " + " ".join(argv))
    with tp.get_source_from_args(args,printer=printer) as source:
        if args.sequence_names == True:
            printer.write("Fetching sequence names ...")
            for name in sorted(source.get_sequence_names()):
                sys.stdout.write("%s\n" % name)

            printer.write("Done.")
            return

        sys.stdout.write("#%s\n" % "\t".join(_HEADER))
        if len(args.regions) == 0:
            printer.write("Listing features from start of table ...")
            queries = [("all",source.iterator())]
        else:
            queries = (("%s:%s-%s" % X,source.query(*X)) for X in args.regions)

        c = 0
        for region, features in queries:
            printer.write("Querying %s ..." % region)
            for feature in features:
                sys.stdout.write(format_feature(region,feature))
                c += 1

        printer.write("Wrote %s features." % c)

    printer.write("Done.")


if __name__ == "__main__":
    main()
