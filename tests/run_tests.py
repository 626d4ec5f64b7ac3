#!/usr/bin/env python3
"""Run the unit tests: ``python tests/run_tests.py [module-suffix ...]``.

With no arguments every ``test_*.py`` module is run; ``matching`` runs
only ``test_matching.py``.
"""
import unittest
import os
import sys

# Project root for `jetstream_matching`, test directory for `fakes`
TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.abspath(os.path.join(TESTS_DIR, '..')))
sys.path.insert(0, TESTS_DIR)


def build_suite(names):
    loader = unittest.defaultTestLoader
    if not names:
        return loader.discover(start_dir=TESTS_DIR, pattern='test_*.py')
    suite = unittest.TestSuite()
    for name in names:
        suite.addTests(loader.discover(start_dir=TESTS_DIR, pattern=f'test_{name}.py'))
    return suite


if __name__ == '__main__':
    result = unittest.TextTestRunner(verbosity=2).run(build_suite(sys.argv[1:]))

    # Exit with non-zero code if tests failed
    sys.exit(not result.wasSuccessful())
