"""
Case Grouper

Partitions case sets by surgeon and by procedure type, and derives the
per-surgeon descriptive fields shown on a scorecard.
"""

from collections import Counter
from typing import Dict, Iterable, List

from orbit_scoring.models import CaseRecord, ProcedureCount


def group_by_surgeon(cases: Iterable[CaseRecord]) -> Dict[str, List[CaseRecord]]:
    """Group cases by surgeon ID, preserving first-seen surgeon order."""
    grouped: Dict[str, List[CaseRecord]] = {}
    for case in cases:
        grouped.setdefault(case.surgeon_id, []).append(case)
    return grouped


def group_by_procedure(cases: Iterable[CaseRecord]) -> Dict[str, List[CaseRecord]]:
    grouped: Dict[str, List[CaseRecord]] = {}
    for case in cases:
        grouped.setdefault(case.procedure_type_id, []).append(case)
    return grouped


def detect_flip_room(cases: Iterable[CaseRecord]) -> bool:
    """True when the surgeon worked in more than one room on any single day."""
    rooms_by_date: Dict[object, set] = {}
    for case in cases:
        rooms_by_date.setdefault(case.scheduled_date, set()).add(case.or_room_id)
    return any(len(rooms) > 1 for rooms in rooms_by_date.values())


def procedure_breakdown(cases: Iterable[CaseRecord]) -> List[ProcedureCount]:
    """
    Count cases per procedure name.

    Returns:
        ProcedureCount list, most frequent first (ties by name)
    """
    counts = Counter(case.display_procedure for case in cases)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [ProcedureCount(name=name, count=count) for name, count in ordered]
