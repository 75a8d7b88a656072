"""A small class hierarchy, two levels deep below BaseSuite."""

import unittest
from abc import ABCMeta, abstractmethod


class BaseSuite(unittest.TestCase):
    pass


class IntegrationBase(BaseSuite):
    pass


class SlowBase(BaseSuite):
    pass


class FastUnitTest(BaseSuite):
    def test_adds(self):
        self.assertEqual(2 + 2, 4)

    def test_concatenates(self):
        self.assertEqual("a" + "b", "ab")


class DatabaseTest(IntegrationBase):
    def test_connects(self):
        self.assertTrue(True)


class NightlyDatabaseTest(DatabaseTest):
    def test_backup(self):
        self.assertTrue(True)


class SlowDatabaseTest(DatabaseTest, SlowBase):
    def test_full_scan(self):
        self.assertTrue(True)


class SlowRenderingTest(SlowBase):
    def test_render(self):
        self.assertTrue(True)


class AbstractStorageTest(BaseSuite, metaclass=ABCMeta):
    @abstractmethod
    def storage(self):
        """Storage under test."""

    def test_stores(self):
        self.assertIsNotNone(self.storage())


class PlainHelper:
    """Not a test case at all."""


class OuterTest(BaseSuite):
    def test_outer(self):
        self.assertTrue(True)

    class InnerTest(BaseSuite):
        def test_inner(self):
            self.assertTrue(True)
