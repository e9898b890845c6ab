"""Shared test fixtures for all test modules."""

from pathlib import Path

import pytest

from orgtree import OrgDocument


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def read_fixture():
    """
    Read a .org file from tests/fixtures by name.

    Newlines are not translated, so the returned text is exactly what is on
    disk and can be compared byte for byte with an export.
    """

    def _read(name: str) -> str:
        with (FIXTURES_DIR / f"{name}.org").open(encoding="utf-8", newline="") as f:
            return f.read()

    return _read


@pytest.fixture
def parse_fixture(read_fixture):
    """Parse a fixture file into an OrgDocument."""

    def _parse(name: str) -> OrgDocument:
        return OrgDocument.parse(read_fixture(name))

    return _parse
