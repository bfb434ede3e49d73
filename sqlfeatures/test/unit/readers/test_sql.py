#!/usr/bin/env python
"""Tests for :py:mod:`sqlfeatures.readers.sql`"""
import os
import shutil
import tempfile
import threading
import unittest
import warnings
from unittest import mock

from sqlalchemy.exc import SQLAlchemyError, DBAPIError, OperationalError

from sqlfeatures.genomics.binning import bin_from_range, calculate_bins
from sqlfeatures.genomics.roitools import GenomicSegment, Transcript
from sqlfeatures.readers.codecs import BED_Codec, GenePred_Codec
from sqlfeatures.readers.dbmanager import ConnectionManager
from sqlfeatures.readers.dbtable import DBTable
from sqlfeatures.readers.planner import MAX_BINS
from sqlfeatures.readers.sql import SQLFeatureSource, RowDecoder, FeatureResult
from sqlfeatures.util.services.exceptions import StorageError, ConfigurationError,\
                                                 DecodeError, DataWarning
from sqlfeatures.test.common import FEATURES, BED_COLUMN_MAP, create_database,\
                                    expected_overlaps

warnings.simplefilter("ignore",DataWarning)

_FEATURE_DICT = { X["name"] : X for X in FEATURES }

def _driver_error(message):
    return OperationalError("SELECT",{},Exception(message))


class _EmptyResult(object):
    """Result with no rows, recording calls to `close`"""

    def __init__(self):
        self.close = mock.MagicMock()

    def __iter__(self):
        return self

    def __next__(self):
        raise StopIteration


#===============================================================================
# INDEX: row decoding
#===============================================================================

class TestRowDecoder(unittest.TestCase):

    def test_fixed_range(self):
        table   = DBTable("test.sqlite","t",start_col_index=2,end_col_index=4)
        decoder = RowDecoder(table,BED_Codec())
        self.assertEqual(decoder.tokenize((7,"chrA",100,200,"x")),["chrA","100","200"])

    def test_fixed_range_clipped_to_row(self):
        table   = DBTable("test.sqlite","t",start_col_index=2)
        decoder = RowDecoder(table,BED_Codec())
        self.assertEqual(decoder.tokenize((7,"chrA",100,None)),["chrA","100",""])

    def test_column_map(self):
        table   = DBTable("test.sqlite","t",column_map={ "chrom" : 0, "s" : 1, "e" : 2, "name" : 4 })
        decoder = RowDecoder(table,BED_Codec())
        pairs   = decoder.resolve(["e","s","chrom","other"])
        self.assertEqual(decoder.tokenize((200,100,"chrA","x"),pairs),["chrA","100","200","",""])

    def test_no_column_map_resolves_to_none(self):
        decoder = RowDecoder(DBTable("test.sqlite","t"),BED_Codec())
        self.assertIsNone(decoder.resolve(["chrom"]))

    def test_decode_round_trip(self):
        table   = DBTable("test.sqlite","t",start_col_index=2)
        decoder = RowDecoder(table,BED_Codec())
        chain   = decoder.decode((1,"chrA",1234,5678,"feat",0,"-"))
        self.assertEqual(chain.spanning_segment,GenomicSegment("chrA",1234,5678,"-"))
        self.assertEqual(chain.get_name(),"feat")


class TestFeatureResult(unittest.TestCase):

    def setUp(self):
        self.decoder = RowDecoder(DBTable("test.sqlite","t"),BED_Codec())

    def test_skips_header_rows(self):
        rows   = iter([("#header",),("chrA",1,10),("track name=x",),("chrA",5,20)])
        result = FeatureResult(rows,self.decoder)
        found  = list(result)
        self.assertEqual([X.spanning_segment.start for X in found],[1,5])
        self.assertTrue(result.closed)

    def test_decode_error_ends_iteration(self):
        result = FeatureResult(iter([("chrA","abc",10),("chrA",5,20)]),self.decoder)
        self.assertRaises(DecodeError,next,result)
        self.assertTrue(result.closed)
        self.assertEqual(list(result),[])

    def test_fetch_error_wrapped(self):
        def rows():
            yield ("chrA",1,10)
            raise _driver_error("disk I/O error")

        result = FeatureResult(rows(),self.decoder,error=SQLAlchemyError)
        next(result)
        with self.assertRaises(StorageError) as ctx:
            next(result)

        self.assertIsInstance(ctx.exception.__cause__,OperationalError)
        self.assertTrue(result.closed)

    def test_close_closes_underlying_result(self):
        rows   = mock.MagicMock()
        result = FeatureResult(rows,self.decoder)
        result.close()
        result.close()
        rows.close.assert_called_once_with()

    def test_context_manager(self):
        with FeatureResult(iter([("chrA",1,10)]),self.decoder) as result:
            pass
        self.assertTrue(result.closed)


#===============================================================================
# INDEX: feature source on a SQLite database
#===============================================================================

class TestSQLFeatureSource(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.tmpdir = tempfile.mkdtemp(prefix="sqlfeatures")
        cls.db = os.path.join(cls.tmpdir,"test.sqlite")
        create_database(cls.db)

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(cls.tmpdir)

    def setUp(self):
        self.manager = ConnectionManager()

    def tearDown(self):
        self.manager.close_all()

    def get_refgene_source(self,**kwargs):
        table = DBTable(self.db,"refGene",format="genepred",bin_col="bin",
                        start_col_index=2,**kwargs)
        return SQLFeatureSource.from_table(table,manager=self.manager)

    def get_bed_source(self,bin_col=None):
        table = DBTable(self.db,"bed_features",format="bed",start_col="chromStart",
                        end_col="chromEnd",bin_col=bin_col,column_map=BED_COLUMN_MAP)
        return SQLFeatureSource.from_table(table,manager=self.manager)

    def test_binned_query_from_chromosome_start(self):
        source = self.get_refgene_source()
        for chrom, start, end in [("chrA",0,1000),("chrA",0,60000),("chrB",0,200000),
                                  ("chrA",1000,50000),("chrB",60000,700000)]:
            with self.subTest(chrom=chrom,start=start,end=end):
                plan, _ = source._get_planner().plan_for(start,end)
                self.assertTrue(plan.binned)
                found = [X.get_name() for X in source.query(chrom,start,end)]
                self.assertEqual(found,expected_overlaps(FEATURES,chrom,start,end))

    def test_binned_query_restricted_to_candidate_bins(self):
        source = self.get_refgene_source()
        for chrom, start, end in [("chrA",1000000,1100000),("chrB",455000,460000),("chrA",2000000,2050000)]:
            with self.subTest(chrom=chrom,start=start,end=end):
                bins = calculate_bins(start,end)
                self.assertLess(len(bins),MAX_BINS)
                expected = [X for X in expected_overlaps(FEATURES,chrom,start,end) \
                            if bin_from_range(_FEATURE_DICT[X]["start"],_FEATURE_DICT[X]["end"]) in bins]
                found = [X.get_name() for X in source.query(chrom,start,end)]
                self.assertEqual(found,expected)

    def test_wide_query_falls_back_to_unbinned(self):
        source = self.get_refgene_source()
        plan, bins = source._get_planner().plan_for(0,3000000)
        self.assertFalse(plan.binned)
        found = [X.get_name() for X in source.query("chrA",0,3000000)]
        self.assertEqual(found,expected_overlaps(FEATURES,"chrA",0,3000000))
        self.assertIn("long_feature",found)

    def test_unbinned_table(self):
        source = self.get_bed_source()
        for chrom, start, end in [("chrA",0,1000),("chrA",1000000,1100000),("chrB",455000,460000),
                                  ("chrC",599999000,600001000),("chrD",0,1000)]:
            with self.subTest(chrom=chrom,start=start,end=end):
                found = [X.get_name() for X in source.query(chrom,start,end)]
                self.assertEqual(found,expected_overlaps(FEATURES,chrom,start,end))

    def test_results_sorted_by_start(self):
        source = self.get_bed_source()
        starts = [X.spanning_segment.start for X in source.query("chrA",0,3000000)]
        self.assertEqual(starts,sorted(starts))

    def test_round_trip_fixed_range(self):
        for kwargs in [{},dict(end_col_index=11)]:
            source = self.get_refgene_source(**kwargs)
            source.feature_window_size = 1000
            found = list(source.iterator())
            self.assertEqual(len(found),len(FEATURES))
            for tx in found:
                expected = _FEATURE_DICT[tx.get_name()]
                self.assertIsInstance(tx,Transcript)
                self.assertEqual(tx.spanning_segment.start,expected["start"])
                self.assertEqual(tx.spanning_segment.end,expected["end"])
                self.assertEqual(tx.chrom,expected["chrom"])
                self.assertEqual(tx.strand,expected["strand"])
                self.assertEqual([(X.start,X.end) for X in tx],expected["exons"])

    def test_round_trip_leading_bin_column(self):
        table  = DBTable(self.db,"refGene",format="genepred",bin_col="bin")
        source = SQLFeatureSource.from_table(table,manager=self.manager)
        tx = source.query("chrA",0,1000).readlines()[0]
        self.assertEqual(tx.get_name(),"long_feature")
        self.assertEqual((tx.cds_genome_start,tx.cds_genome_end),(500,3999500))

    def test_round_trip_column_map(self):
        source = self.get_bed_source(bin_col="bin")
        source.feature_window_size = 1000
        found = list(source.iterator())
        self.assertEqual(len(found),len(FEATURES))
        for chain in found:
            expected = _FEATURE_DICT[chain.get_name()]
            self.assertEqual(chain.spanning_segment,GenomicSegment(expected["chrom"],
                                                                   expected["start"],
                                                                   expected["end"],
                                                                   expected["strand"]))

    def test_iterator_limited_by_window_size(self):
        source = self.get_bed_source()
        source.feature_window_size = 5
        found = list(source.iterator())
        self.assertEqual(len(found),5)
        self.assertEqual(found[0].get_name(),"long_feature")

    def test_getitem_respects_strand(self):
        source = self.get_refgene_source()
        roi = GenomicSegment("chrA",0,1000000,"-")
        found = source[roi]
        self.assertGreater(len(found),0)
        self.assertTrue(all(X.strand == "-" for X in found))
        unstranded = source[GenomicSegment("chrA",0,1000000,".")]
        self.assertEqual([X.get_name() for X in unstranded],expected_overlaps(FEATURES,"chrA",0,1000000))

    def test_get_sequence_names(self):
        names = self.get_bed_source().get_sequence_names()
        self.assertEqual(len(names),3)
        self.assertEqual(set(names),{ X["chrom"] for X in FEATURES })

    def test_new_query_closes_previous_result(self):
        source = self.get_refgene_source()
        first  = source.query("chrA",0,2000000)
        next(first)
        second = source.query("chrB",0,200000)
        self.assertTrue(first.closed)
        self.assertEqual(list(first),[])
        self.assertEqual([X.get_name() for X in second],expected_overlaps(FEATURES,"chrB",0,200000))

    def test_missing_table_raises_storage_error(self):
        source = SQLFeatureSource.from_table(DBTable(self.db,"no_such_table"),manager=self.manager)
        with self.assertRaises(StorageError) as ctx:
            source.query("chrA",0,1000)

        self.assertIsInstance(ctx.exception.__cause__,DBAPIError)
        self.assertRaises(StorageError,source.get_sequence_names)

    def test_unknown_format_raises(self):
        self.assertRaises(ConfigurationError,SQLFeatureSource.from_table,
                          DBTable(self.db,"refGene",format="gff"),manager=self.manager)

    def test_close(self):
        source = self.get_refgene_source()
        result = source.query("chrA",0,1000000)
        next(result)
        source.close()
        self.assertTrue(source.closed)
        self.assertTrue(result.closed)
        self.assertNotIn(self.db,self.manager)
        source.close()

        self.assertRaises(StorageError,source.query,"chrA",0,1000)
        self.assertRaises(StorageError,source.iterator)
        self.assertRaises(StorageError,source.get_sequence_names)

    def test_close_before_query(self):
        source = self.get_refgene_source()
        source.close()
        source.close()
        self.assertTrue(source.closed)

    def test_context_manager(self):
        with self.get_refgene_source() as source:
            list(source.query("chrA",0,1000))
        self.assertTrue(source.closed)


#===============================================================================
# INDEX: behavior that must not touch storage
#===============================================================================

class TestSQLFeatureSourceWithoutStorage(unittest.TestCase):

    def setUp(self):
        self.manager = mock.MagicMock()
        self.manager.error = SQLAlchemyError
        self.source  = SQLFeatureSource(DBTable("test.sqlite","refGene",bin_col="bin"),
                                        GenePred_Codec(),manager=self.manager)

    def test_reversed_query_beyond_window_returns_nothing(self):
        self.source.feature_window_size = 1000000
        self.assertEqual(list(self.source.query("chrA",2000000,500000)),[])
        self.manager.get_connection.assert_not_called()
        self.assertEqual(self.manager.method_calls,[])

    def test_close_without_queries(self):
        self.source.close()
        self.source.close()
        self.manager.close_connection.assert_not_called()

    def test_plans_created_once(self):
        planners = []
        def worker():
            planners.append(self.source._get_planner())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(planners),8)
        self.assertTrue(all(X is planners[0] for X in planners))
        self.manager.get_connection.assert_called_once_with("test.sqlite")

    def test_driver_error_on_execute_wrapped(self):
        conn = self.manager.get_connection.return_value
        conn.execute.side_effect = _driver_error("database is locked")
        with self.assertRaises(StorageError) as ctx:
            self.source.query("chrA",0,1000)

        self.assertIsInstance(ctx.exception.__cause__,OperationalError)

    def test_failed_execute_leaves_no_open_result(self):
        conn = self.manager.get_connection.return_value
        first_result = _EmptyResult()
        good_result  = _EmptyResult()
        conn.execute.side_effect = [first_result,_driver_error("database is locked"),good_result]

        self.source.query("chrA",0,1000)
        self.assertRaises(StorageError,self.source.query,"chrA",0,1000)
        self.assertIsNone(self.source._result)
        first_result.close.assert_called_once_with()

        self.assertEqual(list(self.source.query("chrA",0,1000)),[])
        good_result.close.assert_called_once_with()

    def test_close_releases_connection_when_result_close_fails(self):
        conn = self.manager.get_connection.return_value
        conn.execute.return_value.close.side_effect = _driver_error("close failed")
        self.source.query("chrA",0,1000)

        with self.assertRaises(StorageError):
            self.source.close()

        self.assertTrue(self.source.closed)
        self.manager.close_connection.assert_called_once_with("test.sqlite")
        self.assertIsNone(self.source._result)

        self.source.close()
        self.manager.close_connection.assert_called_once_with("test.sqlite")

    def test_feature_window_size(self):
        self.assertEqual(self.source.feature_window_size,1000000)
        self.source.feature_window_size = "500"
        self.assertEqual(self.source.feature_window_size,500)
        with self.assertRaises(ConfigurationError):
            self.source.feature_window_size = -1
