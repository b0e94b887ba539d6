#!/usr/bin/env python3
"""
Tests for the command line interface (manual entry, search, backup/restore).
"""

import io
import json
import os
import sys
import tempfile
from contextlib import redirect_stdout

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import main as cli
from boxscan.config.settings import reset_config


def run(db_path, *argv):
    out = io.StringIO()
    try:
        with redirect_stdout(out):
            code = cli.main(['--database', db_path, *argv])
    finally:
        reset_config()
    return code, out.getvalue()


def test_manual_workflow():
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = os.path.join(tmpdir, 'cli.db')

        code, out = run(db_path, 'add-container', 'SHELF-A3')
        assert code == 0 and 'SHELF-A3 added' in out

        code, out = run(db_path, 'add-item', 'SHELF-A3', 'Soldering iron')
        assert code == 0

        code, out = run(db_path, 'list')
        assert code == 0
        assert 'Containers (3)' in out
        assert '[0] Soldering iron' in out

        code, out = run(db_path, 'search', 'solder')
        assert 'Soldering iron  ->  SHELF-A3' in out

        code, out = run(db_path, 'remove-item', 'SHELF-A3', '0')
        assert code == 0 and "Removed 'Soldering iron'" in out

        code, out = run(db_path, 'remove-container', 'SHELF-A3', '--yes')
        assert code == 0
        code, out = run(db_path, 'list')
        assert 'Containers (2)' in out
    print("✓ test_manual_workflow passed")


def test_errors_exit_nonzero():
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = os.path.join(tmpdir, 'cli.db')
        code, out = run(db_path, 'add-container', 'BOX-001')
        assert code == 1 and 'already exists' in out
        code, out = run(db_path, 'remove-item', 'BOX-001', '7')
        assert code == 1 and 'Error' in out
        code, out = run(db_path, 'add-item', 'NOWHERE', 'thing')
        assert code == 1
    print("✓ test_errors_exit_nonzero passed")


def test_export_then_import():
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = os.path.join(tmpdir, 'cli.db')
        backups = os.path.join(tmpdir, 'backups')

        code, out = run(db_path, 'export', '--output-dir', backups)
        assert code == 0
        files = os.listdir(backups)
        assert len(files) == 1 and files[0].startswith('inventory-backup-')
        backup = os.path.join(backups, files[0])
        with open(backup, encoding='utf-8') as f:
            assert [c['id'] for c in json.load(f)] == ['BOX-001', 'BOX-002']

        run(db_path, 'remove-container', 'BOX-001', '--yes')
        code, out = run(db_path, 'import', backup)
        assert code == 0 and '2 containers' in out

        bad = os.path.join(tmpdir, 'bad.json')
        with open(bad, 'w', encoding='utf-8') as f:
            f.write('{"not": "an array"}')
        code, out = run(db_path, 'import', bad)
        assert code == 1

        code, out = run(db_path, 'list')
        assert 'BOX-001' in out and 'BOX-002' in out
    print("✓ test_export_then_import passed")


def main():
    """Run all tests."""
    tests = [
        test_manual_workflow,
        test_errors_exit_nonzero,
        test_export_then_import,
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
