#!/usr/bin/env python
"""Tests for :py:mod:`sqlfeatures.readers.dbmanager`"""
import unittest
from unittest import mock
from sqlalchemy.exc import OperationalError
from sqlfeatures.readers.dbmanager import ConnectionManager, locator_to_url
from sqlfeatures.util.services.exceptions import StorageError


class TestLocatorToUrl(unittest.TestCase):

    def test_sqlite_filename(self):
        self.assertEqual(locator_to_url("annotations.sqlite"),"sqlite:///annotations.sqlite")
        self.assertEqual(locator_to_url("/tmp/annotations.sqlite"),"sqlite:////tmp/annotations.sqlite")

    def test_memory(self):
        self.assertEqual(locator_to_url(":memory:"),"sqlite://")

    def test_url_unchanged(self):
        for url in ["postgresql://localhost/annotations",
                    "mysql+pymysql://genome@genome-mysql.soe.ucsc.edu/hg19",
                    "sqlite:///annotations.sqlite"]:
            self.assertEqual(locator_to_url(url),url)


class TestConnectionManager(unittest.TestCase):

    def test_connections_shared_by_locator(self):
        manager = ConnectionManager()
        conn = manager.get_connection(":memory:")
        self.assertIs(manager.get_connection(":memory:"),conn)
        self.assertIn(":memory:",manager)
        manager.close_connection(":memory:")
        self.assertNotIn(":memory:",manager)
        self.assertTrue(conn.closed)

    def test_close_is_idempotent(self):
        manager = ConnectionManager()
        manager.get_connection(":memory:")
        manager.close_connection(":memory:")
        manager.close_connection(":memory:")
        manager.close_connection("never_opened")

    def test_engine_created_once_per_locator(self):
        factory = mock.MagicMock()
        manager = ConnectionManager(engine_factory=factory)
        manager.get_connection("db1")
        manager.get_connection("db1")
        manager.get_connection(":memory:")
        self.assertEqual(factory.call_args_list,[mock.call("sqlite:///db1"),mock.call("sqlite://")])

        manager.close_all()
        engine = factory.return_value
        self.assertEqual(engine.connect.return_value.close.call_count,2)
        self.assertEqual(engine.dispose.call_count,2)
        self.assertNotIn("db1",manager)

    def test_connect_failure_wrapped(self):
        factory = mock.MagicMock()
        engine  = factory.return_value
        engine.connect.side_effect = OperationalError("connect",{},Exception("unable to open database file"))
        manager = ConnectionManager(engine_factory=factory)
        with self.assertRaises(StorageError) as ctx:
            manager.get_connection("/no/such/dir/test.sqlite")

        self.assertIsInstance(ctx.exception.__cause__,OperationalError)
        self.assertNotIn("/no/such/dir/test.sqlite",manager)
        engine.dispose.assert_called_once_with()

    def test_engine_disposed_when_close_fails(self):
        factory = mock.MagicMock()
        engine  = factory.return_value
        engine.connect.return_value.close.side_effect = OperationalError("close",{},Exception("disk I/O error"))
        manager = ConnectionManager(engine_factory=factory)
        manager.get_connection("db1")
        self.assertRaises(StorageError,manager.close_connection,"db1")
        engine.dispose.assert_called_once_with()
        self.assertNotIn("db1",manager)

    def test_printer_logs(self):
        printer = mock.MagicMock()
        manager = ConnectionManager(printer=printer)
        manager.get_connection(":memory:")
        manager.close_connection(":memory:")
        self.assertEqual(printer.write.call_count,2)
