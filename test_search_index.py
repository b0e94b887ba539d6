#!/usr/bin/env python3
"""
Tests for item search across containers.
"""

import os
import sys
import tempfile

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from boxscan.inventory.ContainerStore import ContainerStore
from boxscan.inventory.SearchIndex import SearchMatch, search
from boxscan.storage.Database import DatabaseManager


def _with_store(fn):
    with tempfile.TemporaryDirectory() as tmpdir:
        db = DatabaseManager(os.path.join(tmpdir, 'test.db'))
        try:
            return fn(ContainerStore(db))
        finally:
            db.close()


def test_case_insensitive_substring():
    def check(store):
        store.create_manual('DESK')
        store.add_item('DESK', 'resistor (35%)')
        matches = search(store, 'RESIST')
        assert matches == [
            SearchMatch(item='Resistors 220Ω', container_id='BOX-002'),
            SearchMatch(item='resistor (35%)', container_id='DESK'),
        ], matches
    _with_store(check)
    print("✓ test_case_insensitive_substring passed")


def test_empty_query_is_inactive():
    def check(store):
        assert search(store, '') == []
        assert search(store, '   ') == []
    _with_store(check)
    print("✓ test_empty_query_is_inactive passed")


def test_no_match():
    def check(store):
        assert search(store, 'oscilloscope') == []
    _with_store(check)
    print("✓ test_no_match passed")


def test_results_follow_mutations():
    def check(store):
        assert len(search(store, 'led')) == 1
        store.remove_item('BOX-002', 1)
        assert search(store, 'led') == []
        store.add_item('BOX-001', 'LED strip')
        assert search(store, 'led') == [SearchMatch(item='LED strip', container_id='BOX-001')]
        assert search(store, 'led')[0].to_dict() == {'item': 'LED strip', 'containerId': 'BOX-001'}
    _with_store(check)
    print("✓ test_results_follow_mutations passed")


def main():
    """Run all tests."""
    tests = [
        test_case_insensitive_substring,
        test_empty_query_is_inactive,
        test_no_match,
        test_results_follow_mutations,
    ]
    failed = 0
    for test_fn in tests:
        try:
            test_fn()
        except AssertionError as e:
            print(f"✗ {test_fn.__name__} FAILED: {e}")
            failed += 1
    print(f"Results: {len(tests) - failed} passed, {failed} failed")
    return 0 if failed == 0 else 1


if __name__ == '__main__':
    sys.exit(main())
