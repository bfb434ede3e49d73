#!/usr/bin/env python
"""This module defines object types that describe features or regions of
interest in a genome. These are the feature types produced by the codecs in
:mod:`sqlfeatures.readers.codecs`.


Important classes
-----------------
|GenomicSegment|
    A single continuous region of a genome, specified by a chromosome name,
    a start coordinate, an end coordinate, and a strand. Coordinates are
    0-indexed and half-open.

|SegmentChain|
    Base class for genomic features with annotation data. |SegmentChains|
    contain zero or more |GenomicSegments|, and can therefore model
    discontinuous features, such as multi-exon transcripts or gapped
    alignments, as well as continuous ones. Annotation data is kept in the
    `attr` dictionary.

|Transcript|
    Subclass of |SegmentChain| that additionally records the genomic
    boundaries of a coding region, if any.
"""
import re

segpat = re.compile(r"([^:]*):([0-9]+)-([0-9]+)\(([+-.])\)")


def sort_segments_lexically(seg):
    """Key for sorting |GenomicSegments| by chromosome, then start, then end"""
    return (seg.chrom,seg.start,seg.end)


#===============================================================================
# INDEX: GenomicSegment
#===============================================================================

class GenomicSegment(object):
    """A continuous segment of the genome, defined by a chromosome name,
    a start coordinate, and end coordinate, and a strand.

    Attributes
    ----------
    chrom : str
        Name of chromosome

    start : int
        0-indexed, left most position of segment

    end : int
        0-indexed, half-open right most position of segment

    strand : str
        Chromosome strand (`'+'`, `'-'`, or `'.'`)
    """

    __slots__ = ("chrom","start","end","strand")

    def __init__(self,chrom,start,end,strand="."):
        """Create a |GenomicSegment|

        Parameters
        ----------
        chrom : str
            Chromosome name

        start : int
            0-indexed, leftmost coordinate of feature

        end : int
            0-indexed, half-open rightmost coordinate of feature.
            Must be >= `start`

        strand : str, optional
            Chromosome strand (`'+'`, `'-'`, or `'.'`; Default: `'.'`)
        """
        if strand not in ("+","-","."):
            raise ValueError("Strand must be '+', '-', or '.'. Found '%s'" % strand)
        if end < start:
            raise ValueError("Segment end (%s) must be >= start (%s)" % (end,start))

        self.chrom  = chrom
        self.start  = start
        self.end    = end
        self.strand = strand

    def __repr__(self):
        return "<%s %s:%s-%s strand='%s'>" % (self.__class__.__name__,
                                              self.chrom,
                                              self.start,
                                              self.end,
                                              self.strand)

    def __str__(self):
        return "%s:%s-%s(%s)" % (self.chrom, self.start, self.end, self.strand)

    @staticmethod
    def from_str(inp):
        """Construct a |GenomicSegment| from its ``str()`` representation,
        `chrom:start-end(strand)`

        Parameters
        ----------
        inp : str

        Returns
        -------
        |GenomicSegment|
        """
        chrom, start, end, strand = segpat.search(inp).groups()
        return GenomicSegment(chrom,int(start),int(end),strand)

    def __len__(self):
        """Return length, in nucleotides, of |GenomicSegment|"""
        return self.end - self.start

    def __eq__(self,other):
        return isinstance(other,GenomicSegment) and\
               self.chrom  == other.chrom and\
               self.strand == other.strand and\
               self.start  == other.start and\
               self.end    == other.end

    def __ne__(self,other):
        return not self == other

    def __hash__(self):
        return hash((self.chrom,self.start,self.end,self.strand))

    def unstranded_overlaps(self,other):
        """Test whether this segment shares positions with `other` on the same
        chromosome, regardless of strand

        Parameters
        ----------
        other : |GenomicSegment|

        Returns
        -------
        bool
        """
        return self.chrom == other.chrom and\
               self.start < other.end and\
               other.start < self.end

    def overlaps(self,other):
        """Test whether this segment shares positions with `other` on the
        same chromosome and strand

        Parameters
        ----------
        other : |GenomicSegment|

        Returns
        -------
        bool
        """
        return self.strand == other.strand and self.unstranded_overlaps(other)


#===============================================================================
# INDEX: SegmentChain & Transcript
#===============================================================================

class SegmentChain(object):
    """Base class for genomic features. |SegmentChains| can contain zero or more
    |GenomicSegments|, and can therefore model discontinuous features, such
    as multi-exon transcripts or gapped alignments.

    Segments are sorted from lowest to greatest starting coordinate, regardless
    of strand.

    Attributes
    ----------
    spanning_segment : |GenomicSegment| or None
        A |GenomicSegment| spanning the endpoints of the |SegmentChain|

    strand : str
        The chromosome strand (`'+'`, `'-'`, or `'.'`)

    chrom : str
        Name of the chromosome on which the |SegmentChain| resides

    attr : dict
        Any miscellaneous attributes or annotation data
    """
    def __init__(self,*segments,**attr):
        """Create a |SegmentChain| from zero or more |GenomicSegment| objects

        Example::

            >>> seg1 = GenomicSegment("chrI",2000,2500,"+")
            >>> seg2 = GenomicSegment("chrI",10000,11000,"+")
            >>> chain = SegmentChain(seg1,seg2,ID="example_chain",type="mRNA")

        Parameters
        ----------
        *segments : |GenomicSegment|
            0 or more GenomicSegments on the same chromosome and strand

        **attr : dict
            Arbitrary attributes. `ID` or `name`, if present, are used
            by :meth:`get_name`
        """
        self.spanning_segment = None
        self._segments = []
        self.strand = None
        self.chrom  = None
        self.attr = attr
        if "type" not in attr:
            self.attr["type"] = "exon"

        self.add_segments(*segments)

    def _update(self):
        self._segments.sort(key=sort_segments_lexically)
        if len(self) > 0:
            self.spanning_segment = GenomicSegment(self.chrom,
                                                   self[0].start,
                                                   self[-1].end,
                                                   self.strand)

    def add_segments(self,*segments):
        """Add one or more |GenomicSegments| to the chain

        Parameters
        ----------
        *segments : |GenomicSegment|
            Segments, which must share a chromosome and strand with the chain

        Raises
        ------
        ValueError
            if segments lie on different chromosomes or strands
        """
        if len(segments) == 0:
            return

        if self.chrom is None:
            self.chrom  = segments[0].chrom
            self.strand = segments[0].strand

        for seg in segments:
            if seg.chrom != self.chrom or seg.strand != self.strand:
                raise ValueError("All segments in a %s must share a chromosome and strand. Found %s, expected %s(%s)" %\
                                 (self.__class__.__name__,seg,self.chrom,self.strand))
            self._segments.append(seg)

        self._update()

    def __repr__(self):
        sout = "<%s segments=%s" % (self.__class__.__name__, len(self))
        if len(self) > 0:
            sout += " bounds=%s name=%s" % (self.spanning_segment,self.get_name())
        return sout + ">"

    def __str__(self):
        """Represent as `'chrom:start-end^start-end^...(strand)'`"""
        if len(self) == 0:
            return "na"

        segs = "^".join(["%s-%s" % (seg.start,seg.end) for seg in self])
        return "%s:%s(%s)" % (self.chrom,segs,self.strand)

    def __getitem__(self,index):
        return self._segments[index]

    def __iter__(self):
        return iter(self._segments)

    def __len__(self):
        """Return the number of |GenomicSegments| in the |SegmentChain|"""
        return len(self._segments)

    def __eq__(self,other):
        return isinstance(other,SegmentChain) and self._segments == other._segments

    def __ne__(self,other):
        return not self == other

    __hash__ = None

    def get_name(self):
        """Return the name of this |SegmentChain|, searching ``self.attr``
        for the keys ``ID``, ``Name``, and ``name``, and falling back to a
        name generated from its coordinates

        Returns
        -------
        str
        """
        return self.attr.get("ID",
               self.attr.get("Name",
               self.attr.get("name",
                             str(self))))

    def get_length(self):
        """Return total length, in nucleotides, of this |SegmentChain|"""
        return sum([len(X) for X in self])

    def unstranded_overlaps(self,other):
        """Return `True` if any segment of `self` shares positions with any
        segment of `other`, regardless of strand

        Parameters
        ----------
        other : |SegmentChain| or |GenomicSegment|

        Returns
        -------
        bool
        """
        others = [other] if isinstance(other,GenomicSegment) else list(other)
        return any(A.unstranded_overlaps(B) for A in self for B in others)

    def overlaps(self,other):
        """Return `True` if `self` and `other` share genomic positions on the same strand

        Parameters
        ----------
        other : |SegmentChain| or |GenomicSegment|

        Returns
        -------
        bool
        """
        return self.strand == other.strand and self.unstranded_overlaps(other)

    @classmethod
    def from_bed(cls,line):
        """Create a feature from a line of a `BED`_ file (BED3 through BED12).

        See the `UCSC file format faq <http://genome.ucsc.edu/FAQ/FAQformat.html>`_
        for column definitions.

        Parameters
        ----------
        line : str
            Tab-delimited line of a BED file, containing 3 or more columns

        Returns
        -------
        |SegmentChain| or subclass
        """
        items = line.strip("\n").split("\t")
        chrom       = items[0]
        chrom_start = int(items[1])
        chrom_end   = int(items[2])
        strand = "." if len(items) < 6 or items[5] == "" else items[5]

        default_id  = "%s:%s-%s(%s)" % (chrom,chrom_start,chrom_end,strand)

        # optional column number -> (attribute name, default, formatter)
        bed_columns = { 3  : ("ID",          default_id,                     str),
                        4  : ("score",       0.0,                            float),
                        6  : ("thickstart",  None,                           int),
                        7  : ("thickend",    None,                           int),
                        8  : ("color",       "0,0,0",                        str),
                        9  : ("blocks",      1,                              int),
                        10 : ("blocksizes",  str(chrom_end - chrom_start),   str),
                        11 : ("blockstarts", "0",                            str),
                      }

        attr = { KEY : VAL for KEY, VAL, _ in bed_columns.values() }
        for i, (key, default, func) in sorted(bed_columns.items()):
            if len(items) <= i:
                break
            try:
                attr[key] = func(items[i])
            except ValueError:
                attr[key] = default

        # zero-length or partial thick regions mean non-coding
        if attr["thickstart"] is None or attr["thickend"] is None \
           or attr["thickstart"] >= attr["thickend"] \
           or attr["thickstart"] < 0:
            attr["thickstart"] = attr["thickend"] = None

        num_frags    = attr.pop("blocks")
        frag_sizes   = [int(X) for X in attr.pop("blocksizes").strip(",").split(",")[:num_frags]]
        frag_offsets = [int(X) for X in attr.pop("blockstarts").strip(",").split(",")[:num_frags]]
        frags = [GenomicSegment(chrom,chrom_start + offset,chrom_start + offset + size,strand) \
                 for offset, size in zip(frag_offsets,frag_sizes)]

        return cls._from_bed_attr(frags,attr)

    @classmethod
    def _from_bed_attr(cls,frags,attr):
        return cls(*frags,**attr)

    @staticmethod
    def from_psl(psl_line):
        """Create a |SegmentChain| from a line of a `PSL`_ (BLAT) file

        Parameters
        ----------
        psl_line : str
            Tab-delimited line of a PSL file, with 21 columns

        Returns
        -------
        |SegmentChain|
        """
        items = psl_line.strip("\n").split("\t")
        attr = {}
        attr["type"]             = "alignment"
        attr["match_length"]     = int(items[0])
        attr["mismatches"]       = int(items[1])
        attr["rep_matches"]      = int(items[2])
        attr["N"]                = int(items[3])
        attr["query_gap_count"]  = int(items[4])
        attr["query_gap_bases"]  = int(items[5])
        attr["target_gap_count"] = int(items[6])
        attr["target_gap_bases"] = int(items[7])
        strand                   = items[8][-1]
        attr["query_name"]       = items[9]
        attr["query_length"]     = int(items[10])
        attr["query_start"]      = int(items[11])
        attr["query_end"]        = int(items[12])
        attr["target_name"]      = items[13]
        attr["target_length"]    = int(items[14])
        attr["target_start"]     = int(items[15])
        attr["target_end"]       = int(items[16])
        attr["ID"]               = attr["query_name"]

        block_sizes = [int(X) for X in items[18].strip(",").split(",")]
        attr["q_starts"] = [int(X) for X in items[19].strip(",").split(",")]
        attr["t_starts"] = [int(X) for X in items[20].strip(",").split(",")]

        segs = [GenomicSegment(attr["target_name"],t_start,t_start + size,strand) \
                for t_start, size in zip(attr["t_starts"],block_sizes)]

        return SegmentChain(*segs,**attr)


class Transcript(SegmentChain):
    """Subclass of |SegmentChain| modeling transcripts, which additionally
    records the boundaries of the coding region, if any.

    Attributes
    ----------
    cds_genome_start : int or None
        Leftmost position in genomic coordinates of coding region, 0-indexed

    cds_genome_end : int or None
        Rightmost position in genomic coordinates of coding region, 0-indexed
        and half-open

    attr : dict
        Miscellaneous attributes
    """

    def __init__(self,*segments,**attr):
        if "type" not in attr:
            attr["type"] = "mRNA"

        self.cds_genome_start = attr.get("cds_genome_start",None)
        self.cds_genome_end   = attr.get("cds_genome_end",None)
        SegmentChain.__init__(self,*segments,**attr)

    def is_coding(self):
        """Return `True` if the |Transcript| has a coding region"""
        return self.cds_genome_start is not None and self.cds_genome_end is not None

    def get_cds(self):
        """Return a |SegmentChain| covering the coding region of the |Transcript|,
        which is empty if the |Transcript| is non-coding

        Returns
        -------
        |SegmentChain|
        """
        if not self.is_coding():
            return SegmentChain()

        segs = []
        for seg in self:
            start = max(seg.start,self.cds_genome_start)
            end   = min(seg.end,self.cds_genome_end)
            if start < end:
                segs.append(GenomicSegment(seg.chrom,start,end,seg.strand))

        return SegmentChain(*segs,ID="%s_CDS" % self.get_name(),type="CDS")

    @classmethod
    def _from_bed_attr(cls,frags,attr):
        attr["cds_genome_start"] = attr["thickstart"]
        attr["cds_genome_end"]   = attr["thickend"]
        return cls(*frags,**attr)
