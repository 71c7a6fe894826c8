from __future__ import annotations

import pytest

from duplicity_backup.catalog import CollectionStatusParser
from duplicity_backup.results import (
    Failure,
    Success,
    VerifyOutcome,
    interpret_catalog,
    interpret_exit,
    interpret_verify,
)


@pytest.mark.parametrize(
    ("exit_code", "outcome"),
    [
        (0, VerifyOutcome.NO_CHANGES),
        (1, VerifyOutcome.IS_CHANGED),
        (30, VerifyOutcome.NO_BACKUP_FOUND),
        (2, VerifyOutcome.CORRUPT_DATA),
        (31, VerifyOutcome.CORRUPT_DATA),
        (-1, VerifyOutcome.CORRUPT_DATA),
        (-9, VerifyOutcome.CORRUPT_DATA),
        (255, VerifyOutcome.CORRUPT_DATA),
        (2**40, VerifyOutcome.CORRUPT_DATA),
    ],
)
def test_verify_exit_codes(exit_code: int, outcome: VerifyOutcome) -> None:
    assert interpret_verify(exit_code) is outcome


def test_verify_mapping_is_total_over_a_range() -> None:
    for exit_code in range(-300, 300):
        assert isinstance(interpret_verify(exit_code), VerifyOutcome)


def test_exit_zero_is_success() -> None:
    result = interpret_exit(0)
    assert result == Success()
    assert result.ok
    assert result.exit_code == 0


@pytest.mark.parametrize("exit_code", [1, 23, 30, -15])
def test_non_zero_exit_is_failure(exit_code: int) -> None:
    result = interpret_exit(exit_code)
    assert result == Failure(exit_code)
    assert not result.ok


def test_catalog_of_failed_collection_status_is_empty() -> None:
    lines = ["Full                         Wed Jan  1 00:00:00 2020          "]
    assert interpret_catalog(30, lines, CollectionStatusParser()) == []
    assert len(interpret_catalog(0, lines, CollectionStatusParser())) == 1
