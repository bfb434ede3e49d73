#!/usr/bin/env python
"""Tests for :py:mod:`sqlfeatures.util.services.exceptions`"""
import unittest
import warnings
from sqlfeatures.util.services.exceptions import MalformedFileError, DecodeError,\
                                                 DataWarning, filterwarnings, warn,\
                                                 formatwarning, pl_filters, pl_once_registry


class TestExceptions(unittest.TestCase):

    def test_malformed_file_error_message(self):
        self.assertEqual(str(MalformedFileError("table","bad row")),"Error reading 'table': bad row")
        self.assertEqual(str(MalformedFileError("table","bad row",line_num=5)),
                         "Error reading 'table' at line 5: bad row")

    def test_decode_error_keeps_line(self):
        err = DecodeError("BED","Cannot parse",line="chrI\tx\t5",line_num=3)
        self.assertIsInstance(err,MalformedFileError)
        self.assertEqual(err.line,"chrI\tx\t5")
        self.assertIn("line 3",str(err))


class TestOncePerFamily(unittest.TestCase):

    def setUp(self):
        self.old_filters = list(pl_filters)
        self.old_registry = dict(pl_once_registry)

    def tearDown(self):
        pl_filters[:] = self.old_filters
        pl_once_registry.clear()
        pl_once_registry.update(self.old_registry)

    def test_one_warning_per_family(self):
        filterwarnings("onceperfamily",message="Test family member",category=DataWarning)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            warn("Test family member 1",DataWarning)
            warn("Test family member 2",DataWarning)
            warn("Unrelated message",DataWarning)

        messages = [str(X.message) for X in caught]
        self.assertEqual(messages,["Test family member 1","Unrelated message"])

    def test_formatwarning(self):
        found = formatwarning("Something odd",DataWarning,"test.py",10,line="x = 1")
        self.assertIn("DataWarning",found)
        self.assertIn("Something odd",found)
        self.assertIn("x = 1",found)
