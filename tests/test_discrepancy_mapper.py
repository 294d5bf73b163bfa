from __future__ import annotations

import pytest

from core.discrepancy_mapper import map_discrepancies
from model.analysis import RawDiscrepancy, Severity
from util.enums import ErrorKind
from util.errors import AuditError


def _raw(severity: str, field: str = "Price") -> RawDiscrepancy:
    return RawDiscrepancy(
        field=field,
        referenceValue="$500,000",
        foundValue="$450,000",
        severity=severity,
        description="Price differs",
        suggestion="Update the price",
    )


def test_ids_follow_provider_order():
    got = map_discrepancies("page-1", [_raw("CRITICAL"), _raw("MINOR", field="Title")])

    assert [d.id for d in got] == ["page-1-d-0", "page-1-d-1"]
    assert [d.field for d in got] == ["Price", "Title"]
    assert got[0].severity == Severity.CRITICAL


def test_mapping_is_deterministic():
    raw = [_raw("MAJOR"), _raw("MINOR")]
    assert map_discrepancies("r", raw) == map_discrepancies("r", raw)


def test_severity_case_and_whitespace_are_normalised():
    got = map_discrepancies("r", [_raw(" major ")])
    assert got[0].severity == Severity.MAJOR


def test_empty_list_maps_to_empty_list():
    assert map_discrepancies("r", []) == []


def test_unknown_severity_is_rejected():
    with pytest.raises(AuditError) as ei:
        map_discrepancies("r", [_raw("CRITICAL"), _raw("URGENT")])

    assert ei.value.kind == ErrorKind.INVALID_SEVERITY
