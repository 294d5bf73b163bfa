# core/discrepancy_mapper.py
from typing import List, Sequence
from model.analysis import Discrepancy, RawDiscrepancy, Severity
from util.enums import ErrorKind
from util.errors import AuditError

_SEVERITIES = {s.value: s for s in Severity}


def _severity(raw: str, position: int) -> Severity:
    sev = _SEVERITIES.get((raw or "").strip().upper())
    if sev is None:
        # Unknown severities are corrupted output, never downgraded silently
        raise AuditError(
            ErrorKind.INVALID_SEVERITY,
            f"Discrepancy #{position} has unknown severity {raw!r}",
        )
    return sev


def map_discrepancies(
    result_id: str, raw_discrepancies: Sequence[RawDiscrepancy]
) -> List[Discrepancy]:
    """
    Assign `<result_id>-d-<index>` ids in provider order and validate severity.
    Pure and deterministic: same input, same ids and order.
    """
    return [
        Discrepancy(
            id=f"{result_id}-d-{idx}",
            field=d.field,
            referenceValue=d.referenceValue,
            foundValue=d.foundValue,
            severity=_severity(d.severity, idx),
            description=d.description,
            suggestion=d.suggestion,
        )
        for idx, d in enumerate(raw_discrepancies)
    ]
