#!/usr/bin/env python
"""Reference genome context for codecs.

Annotation tables from different sources often disagree on chromosome
naming (e.g. `chr1` vs `1`, `chrM` vs `MT`). A |ReferenceGenome| carries an
alias table so that codecs can report every feature under the genome's own,
canonical chromosome names.
"""


class ReferenceGenome(object):
    """Minimal description of a reference genome

    Parameters
    ----------
    name : str
        Name of genome assembly (e.g. `'hg19'`)

    aliases : dict, optional
        Dictionary mapping alternate chromosome names to canonical names

    chromosomes : list, optional
        Canonical chromosome names. Each is also registered as its own alias,
        and, for names beginning with `chr`, so is the name without the prefix

    Attributes
    ----------
    name : str
        Name of genome assembly

    aliases : dict
        Alternate chromosome name -> canonical chromosome name
    """

    def __init__(self,name,aliases=None,chromosomes=None):
        self.name    = name
        self.aliases = {}
        for chrom in ([] if chromosomes is None else chromosomes):
            self.aliases[chrom] = chrom
            if chrom.startswith("chr"):
                self.aliases.setdefault(chrom[3:],chrom)

        if aliases is not None:
            self.aliases.update(aliases)

    def __repr__(self):
        return "<%s %s aliases=%s>" % (self.__class__.__name__,self.name,len(self.aliases))

    def get_canonical_name(self,chrom):
        """Return the canonical name of `chrom`, or `chrom` itself if it has no alias

        Parameters
        ----------
        chrom : str
            Chromosome name as found in a data source

        Returns
        -------
        str
        """
        return self.aliases.get(chrom,chrom)
