"""
Shared test fixtures and helpers for the ct-log-store test suite.

Provides the published-format log-list fixture, a manually advanced clock,
and stub compliance policies whose verdict is fixed at construction.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from ct_log_store.domain.models import PolicyCompliance

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def fixture_path(filename: str) -> Path:
    """
    Resolve the absolute path to a test fixture file.

    Raises FileNotFoundError if the fixture does not exist.
    """
    path = FIXTURES_DIR / filename
    if not path.exists():
        raise FileNotFoundError(f"Test fixture not found: {path}")
    return path


class FakeClock:
    """Clock port whose time only moves when the test says so."""

    def __init__(self, start_millis: int = 1_000_000) -> None:
        self.millis = start_millis

    def now_millis(self) -> int:
        return self.millis

    def advance(self, millis: int) -> None:
        self.millis += millis


class StubPolicy:
    """CompliancePolicy with a fixed store verdict; records what it was shown."""

    def __init__(self, compliant: bool) -> None:
        self.compliant = compliant
        self.seen_log_counts: list[int] = []

    def is_log_store_compliant(self, store: Any) -> bool:
        self.seen_log_counts.append(len(store.get_logs()))
        return self.compliant

    def classify_evidence(self, result: Any, leaf: Any) -> PolicyCompliance:
        return PolicyCompliance.COMPLY


@pytest.fixture()
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture()
def valid_log_list_raw() -> bytes:
    """Raw bytes of the two-operator, three-log published fixture."""
    return fixture_path("log_list_valid.json").read_bytes()


@pytest.fixture()
def valid_log_list_dict(valid_log_list_raw: bytes) -> dict[str, Any]:
    """The fixture as a dict, for tests that derive variants of it."""
    return json.loads(valid_log_list_raw)


@pytest.fixture()
def single_log_list_dict(valid_log_list_dict: dict[str, Any]) -> dict[str, Any]:
    """One operator with one log ('Operator 1' / 'Test2024')."""
    operator = dict(valid_log_list_dict["operators"][0])
    operator["logs"] = operator["logs"][:1]
    return {**valid_log_list_dict, "operators": [operator]}


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def compliant_policy() -> StubPolicy:
    return StubPolicy(compliant=True)


@pytest.fixture()
def non_compliant_policy() -> StubPolicy:
    return StubPolicy(compliant=False)


@pytest.fixture()
def write_log_list(tmp_path: Path) -> Callable[[bytes | str | dict[str, Any]], Path]:
    """
    Return a writer that (re)writes tmp_path/log_list.json and returns its path.

    Accepts raw bytes, text, or a dict (serialized as JSON).
    """
    path = tmp_path / "log_list.json"

    def _write(content: bytes | str | dict[str, Any]) -> Path:
        if isinstance(content, dict):
            content = json.dumps(content)
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
        return path

    return _write
