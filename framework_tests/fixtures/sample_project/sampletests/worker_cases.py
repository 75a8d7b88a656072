"""Test classes executed inside worker processes."""

import os
import time
import unittest


def triple(value):
    result = value * 3
    return result


class ArithmeticTest(unittest.TestCase):
    def test_first(self):
        self.assertEqual(triple(1), 3)

    def test_second(self):
        self.assertEqual(triple(2), 6)

    def test_third(self):
        self.assertEqual(triple(3), 9)


class MixedOutcomeTest(unittest.TestCase):
    def test_passes(self):
        self.assertTrue(True)

    def test_fails(self):
        self.assertEqual(triple(1), 4)

    def test_errors(self):
        raise RuntimeError("boom")

    @unittest.skip("not today")
    def test_skipped(self):
        pass


class CrashingTest(unittest.TestCase):
    def test_a_completes(self):
        self.assertEqual(triple(1), 3)

    def test_b_crashes(self):
        os._exit(3)

    def test_c_never_runs(self):
        self.assertTrue(True)


class SleepyTest(unittest.TestCase):
    def test_sleeps(self):
        time.sleep(60)
