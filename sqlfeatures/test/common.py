#!/usr/bin/env python
"""Synthetic annotation tables shared by unit and functional tests"""
import sqlite3
from sqlfeatures.genomics.binning import bin_from_range


#===============================================================================
# INDEX: synthetic features
#===============================================================================

def make_features():
    """Return a list of dictionaries describing two-exon features on two
    chromosomes, plus one very long feature and one beyond 512 Mb"""
    features = []
    for i in range(60):
        start  = 5000 + i*45000
        length = 1000 + (i*7919) % 250000
        end    = start + length
        exon   = length // 4
        if i % 4 == 0:
            cds_start = cds_end = end
        else:
            cds_start = start + 10
            cds_end   = end - 10

        features.append({ "name"      : "feature_%02d" % i,
                          "chrom"     : ("chrA","chrB")[i % 2],
                          "strand"    : "-" if i % 3 == 0 else "+",
                          "start"     : start,
                          "end"       : end,
                          "exons"     : [(start,start + exon),(end - exon,end)],
                          "cds_start" : cds_start,
                          "cds_end"   : cds_end,
                        })

    features.append({ "name"      : "long_feature",
                      "chrom"     : "chrA",
                      "strand"    : "+",
                      "start"     : 10,
                      "end"       : 4000000,
                      "exons"     : [(10,1000),(3999000,4000000)],
                      "cds_start" : 500,
                      "cds_end"   : 3999500,
                    })
    features.append({ "name"      : "distal_feature",
                      "chrom"     : "chrC",
                      "strand"    : "+",
                      "start"     : 600000000,
                      "end"       : 600005000,
                      "exons"     : [(600000000,600005000)],
                      "cds_start" : 600005000,
                      "cds_end"   : 600005000,
                    })
    return features

FEATURES = make_features()

def expected_overlaps(features,chrom,start,end):
    """Names of features a table query should return, in order of start coordinate"""
    found = [X for X in features if X["chrom"] == chrom and \
             ((X["start"] >= start and X["start"] < end) or \
              (X["start"] < start and X["end"] >= start))]
    return [X["name"] for X in sorted(found,key=lambda x: x["start"])]


#===============================================================================
# INDEX: tables
#===============================================================================

REFGENE_COLUMNS = ("bin","name","chrom","strand","txStart","txEnd","cdsStart",
                   "cdsEnd","exonCount","exonStarts","exonEnds","score","name2")

BED_COLUMNS = ("name","chromEnd","strand","chrom","score","chromStart","bin")
"""Columns of a BED-like table, deliberately out of BED order"""

BED_COLUMN_MAP = { "chrom"      : 0,
                   "chromStart" : 1,
                   "chromEnd"   : 2,
                   "name"       : 3,
                   "score"      : 4,
                   "strand"     : 5,
                 }

def refgene_row(feature):
    starts = "".join(["%s," % X[0] for X in feature["exons"]])
    ends   = "".join(["%s," % X[1] for X in feature["exons"]])
    return (bin_from_range(feature["start"],feature["end"]),
            feature["name"],
            feature["chrom"],
            feature["strand"],
            feature["start"],
            feature["end"],
            feature["cds_start"],
            feature["cds_end"],
            len(feature["exons"]),
            starts,
            ends,
            0,
            "gene_%s" % feature["name"])

def bed_row(feature):
    return (feature["name"],
            feature["end"],
            feature["strand"],
            feature["chrom"],
            0,
            feature["start"],
            bin_from_range(feature["start"],feature["end"]))

def create_table(conn,table_name,columns,rows):
    """Create and fill a table. Coordinate and bin columns are declared `INTEGER`"""
    text_columns = ("name","chrom","strand","exonStarts","exonEnds","name2")
    decl = ", ".join(["%s %s" % (X,"TEXT" if X in text_columns else "INTEGER") for X in columns])
    conn.execute("CREATE TABLE %s (%s)" % (table_name,decl))
    conn.executemany("INSERT INTO %s VALUES (%s)" % (table_name,",".join(["?"]*len(columns))),rows)
    conn.commit()

def create_database(filename,features=FEATURES):
    """Write a SQLite database with a UCSC-style `refGene` table and a
    BED-like table `bed_features`"""
    conn = sqlite3.connect(filename)
    try:
        create_table(conn,"refGene",REFGENE_COLUMNS,[refgene_row(X) for X in features])
        create_table(conn,"bed_features",BED_COLUMNS,[bed_row(X) for X in features])
    finally:
        conn.close()
