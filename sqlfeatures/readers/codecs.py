#!/usr/bin/env python
"""This module contains codecs, which decode a single line of text in a known
annotation format into a feature object (a |SegmentChain| or |Transcript|).

Codecs decouple the *projection* of stored records into flat text from the
*parsing* of that text: any row that can be projected into one of the formats
below can be read by :class:`~sqlfeatures.readers.sql.SQLFeatureSource`
without format-specific SQL.

.. contents::
   :local:

Module contents
---------------

.. autosummary::

   AbstractFeatureCodec
   BED_Codec
   PSL_Codec
   GenePred_Codec
   get_codec

Codecs are selected with :func:`get_codec`, by format name or file extension:

    ================    ==================================================
    **Key**             **Codec**
    ----------------    --------------------------------------------------
    `bed`               |BED_Codec|: `BED`_ and BED3 to BED12 variants
    `psl`               |PSL_Codec|: `PSL`_ (BLAT) alignments
    `genepred`          |GenePred_Codec|: UCSC genePred tables (e.g. refGene)
    `ucscgene`          |GenePred_Codec|: UCSC knownGene tables
    `refflat`           |GenePred_Codec|: UCSC refFlat tables
    ================    ==================================================


Examples
--------
Decode a BED line::

    >>> codec = get_codec("bed")
    >>> codec.decode("chrI\\t100\\t200\\tmy_feature\\t0\\t+")
    <SegmentChain segments=1 bounds=chrI:100-200(+) name=my_feature>

Header-like lines decode to `None`::

    >>> codec.decode("track name=my_track") is None
    True


See also
--------
`UCSC file format FAQ <http://genome.ucsc.edu/FAQ/FAQformat.html>`_
    Format specifications for BED, PSL, and genePred
"""
from abc import abstractmethod
from sqlfeatures.genomics.roitools import GenomicSegment, SegmentChain, Transcript
from sqlfeatures.util.services.exceptions import ConfigurationError, DecodeError


#===============================================================================
# INDEX: codecs
#===============================================================================

class AbstractFeatureCodec(object):
    """Abstract base class for codecs. Subclasses implement :meth:`_decode`
    and may override :meth:`is_header`.

    Parameters
    ----------
    genome : |ReferenceGenome| or None, optional
        If given, chromosome names are converted to the genome's canonical names

    Attributes
    ----------
    counter : int
        Number of lines passed to :meth:`decode`

    genome : |ReferenceGenome| or None
        Reference genome context
    """

    name = None
    """Format name, used in error messages"""

    chrom_column = 0
    """Index of the token holding the chromosome name"""

    def __init__(self,genome=None):
        self.genome  = genome
        self.counter = 0

    def __repr__(self):
        return "<%s genome=%s>" % (self.__class__.__name__,
                                   None if self.genome is None else self.genome.name)

    def is_header(self,line):
        """Return `True` if `line` is a comment, blank, or declaration line
        that describes no feature"""
        return line.strip() == "" or line.startswith("#")

    def decode(self,line):
        """Decode a line of text into a feature

        Parameters
        ----------
        line : str
            Tab-delimited line of text

        Returns
        -------
        |SegmentChain|, |Transcript|, or None
            Feature, or `None` if `line` is a header or comment line

        Raises
        ------
        DecodeError
            if `line` cannot be parsed, or describes a feature without segments
        """
        self.counter += 1
        if self.is_header(line):
            return None

        tokens = line.rstrip("\n").split("\t")
        if self.genome is not None and len(tokens) > self.chrom_column:
            tokens[self.chrom_column] = self.genome.get_canonical_name(tokens[self.chrom_column])

        try:
            feature = self._decode(tokens)
            if len(feature) == 0:
                raise ValueError("feature has no segments")
        except (ValueError,IndexError) as e:
            raise DecodeError(self.name,
                              "Cannot parse %s line: %s" % (self.name,e),
                              line=line,
                              line_num=self.counter) from e

        return feature

    @abstractmethod
    def _decode(self,tokens):
        """Build a feature from a list of tokens. Implement in subclasses.

        Raises
        ------
        ValueError or IndexError
            if the tokens are malformed
        """
        pass


class BED_Codec(AbstractFeatureCodec):
    """Decode `BED`_ lines (BED3 through BED12) into |SegmentChains| or |Transcripts|

    Parameters
    ----------
    genome : |ReferenceGenome| or None, optional
        Reference genome context

    return_type : |SegmentChain|, |Transcript|, or None, optional
        Type of feature to return. |Transcripts| take their coding regions
        from the `thickStart` and `thickEnd` columns. If `None` (default),
        lines with a coding region become |Transcripts| and all others
        become |SegmentChains|
    """

    name = "BED"

    def __init__(self,genome=None,return_type=None):
        AbstractFeatureCodec.__init__(self,genome=genome)
        self.return_type = return_type

    def is_header(self,line):
        return AbstractFeatureCodec.is_header(self,line) \
               or line.startswith("track") \
               or line.startswith("browser")

    def _decode(self,tokens):
        if len(tokens) < 3:
            raise ValueError("BED lines require at least 3 columns. Found %s" % len(tokens))

        return_type = self.return_type
        if return_type is None:
            coding = len(tokens) >= 8 and tokens[6].isdigit() and tokens[7].isdigit() \
                     and int(tokens[6]) < int(tokens[7])
            return_type = Transcript if coding else SegmentChain

        return return_type.from_bed("\t".join(tokens))


class PSL_Codec(AbstractFeatureCodec):
    """Decode `PSL`_ lines into |SegmentChains|"""

    name = "PSL"
    chrom_column = 13

    def is_header(self,line):
        return AbstractFeatureCodec.is_header(self,line) \
               or line.startswith("psLayout") \
               or line.lstrip().startswith("match") \
               or line.startswith("--")

    def _decode(self,tokens):
        if len(tokens) < 21:
            raise ValueError("PSL lines require 21 columns. Found %s" % len(tokens))

        return SegmentChain.from_psl("\t".join(tokens))


class GenePred_Codec(AbstractFeatureCodec):
    """Decode UCSC `genePred`, `knownGene`, and `refFlat` records into |Transcripts|

    genePred columns are `name, chrom, strand, txStart, txEnd, cdsStart,
    cdsEnd, exonCount, exonStarts, exonEnds`, optionally followed by `score,
    name2, cdsStartStat, cdsEndStat, exonFrames`. refFlat records prepend a
    gene name. Tables dumped from UCSC often prepend a `bin` column, which
    is detected and skipped.

    Parameters
    ----------
    genome : |ReferenceGenome| or None, optional
        Reference genome context

    flavor : str, optional
        One of `'genepred'`, `'ucscgene'`, or `'refflat'` (Default: `'genepred'`)
    """

    name = "genePred"

    _LEADING_COLUMNS = { "genepred" : 0,
                         "ucscgene" : 0,
                         "refflat"  : 1,
                       }

    def __init__(self,genome=None,flavor="genepred"):
        AbstractFeatureCodec.__init__(self,genome=genome)
        try:
            self.leading = GenePred_Codec._LEADING_COLUMNS[flavor]
        except KeyError:
            raise ConfigurationError("Unknown genePred flavor '%s'. Choose from: %s" %\
                                     (flavor,", ".join(sorted(GenePred_Codec._LEADING_COLUMNS))))
        self.flavor = flavor
        self.chrom_column = self.leading + 1

    def decode(self,line):
        tokens = line.split("\t")

        # a leading integer bin column shifts every column right by one
        strand_col = self.leading + 2
        if len(tokens) > strand_col + 1 and tokens[0].isdigit() \
           and tokens[strand_col] not in ("+","-") \
           and tokens[strand_col + 1] in ("+","-"):
            line = "\t".join(tokens[1:])

        return AbstractFeatureCodec.decode(self,line)

    def _decode(self,tokens):
        attr = {}
        if self.leading == 1:
            attr["gene_name"] = tokens[0]
            tokens = tokens[1:]

        name      = tokens[0]
        chrom     = tokens[1]
        strand    = tokens[2]
        tx_start  = int(tokens[3])
        tx_end    = int(tokens[4])
        cds_start = int(tokens[5])
        cds_end   = int(tokens[6])
        num_exons = int(tokens[7])
        starts    = [int(X) for X in tokens[8].strip(",").split(",")][:num_exons]
        ends      = [int(X) for X in tokens[9].strip(",").split(",")][:num_exons]
        if len(starts) != num_exons or len(ends) != num_exons:
            raise ValueError("Expected %s exons, found %s starts and %s ends" % (num_exons,len(starts),len(ends)))

        if self.flavor != "ucscgene" and len(tokens) > 11:
            attr["gene_id"] = tokens[11]

        attr["ID"] = name
        attr["tx_start"] = tx_start
        attr["tx_end"]   = tx_end
        if cds_start < cds_end:
            attr["cds_genome_start"] = cds_start
            attr["cds_genome_end"]   = cds_end

        segs = [GenomicSegment(chrom,X,Y,strand) for X, Y in zip(starts,ends)]
        return Transcript(*segs,**attr)


#===============================================================================
# INDEX: codec factory
#===============================================================================

_CODECS = { "bed"      : (BED_Codec,{}),
            "psl"      : (PSL_Codec,{}),
            "genepred" : (GenePred_Codec,{ "flavor" : "genepred" }),
            "ucscgene" : (GenePred_Codec,{ "flavor" : "ucscgene" }),
            "refflat"  : (GenePred_Codec,{ "flavor" : "refflat" }),
          }

def get_codec(path,genome=None):
    """Return a codec for a format name, file extension, or filename

    Parameters
    ----------
    path : str
        Format name (e.g. `'bed'`), extension (e.g. `'.bed'`), or filename
        (e.g. `'genes.bed'` or `'genes.bed.gz'`). Case-insensitive

    genome : |ReferenceGenome| or None, optional
        Reference genome context passed to the codec

    Returns
    -------
    |AbstractFeatureCodec|

    Raises
    ------
    ConfigurationError
        if no codec is available for the format
    """
    if path is None:
        raise ConfigurationError("No format given. Supported formats are: %s" % ", ".join(sorted(_CODECS)))

    fmt = path.lower()
    if fmt.endswith(".gz"):
        fmt = fmt[:-3]
    fmt = fmt.split(".")[-1]

    try:
        codec_class, kwargs = _CODECS[fmt]
    except KeyError:
        raise ConfigurationError("No codec found for format '%s'. Supported formats are: %s" %\
                                 (path,", ".join(sorted(_CODECS))))

    return codec_class(genome=genome,**kwargs)
