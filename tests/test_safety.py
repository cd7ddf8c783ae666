"""Guards against the suite touching the shipped config or a real database.

Snapshots are taken when this module is collected, before any test runs;
collection happens ahead of execution, so the checks below see the effect
of every phase folder.
"""

import os
import re
from pathlib import Path

import pytest

GUARDED = ("data/config", "db")


def _fingerprint(path: Path) -> tuple | None:
    if not path.exists():
        return None
    entries = []
    for root, dirs, files in os.walk(path):
        dirs.sort()
        for name in sorted(files):
            stat = (Path(root) / name).stat()
            entries.append((os.path.relpath(Path(root) / name, path), stat.st_size, stat.st_mtime_ns))
    return tuple(entries)


_BEFORE = {name: _fingerprint(Path(name)) for name in GUARDED}


@pytest.mark.parametrize("name", GUARDED)
def test_directory_untouched(name):
    assert _fingerprint(Path(name)) == _BEFORE[name], (
        f"./{name} changed during the test run; use tmp_path-based fixtures"
    )


# Calls that fall back to paths.db_path when given no database.
_DEFAULT_DB_CALLS = re.compile(r"\b(init_db|build_engine|get_db)\(\)")


def test_phase_tests_pass_explicit_databases():
    offenders = [
        f"{path}:{lineno}"
        for path in sorted(Path("tests").glob("f*/test_*.py"))
        for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1)
        if _DEFAULT_DB_CALLS.search(line) or 'Path("db")' in line
    ]
    assert not offenders, "default database used in: " + ", ".join(offenders)
