"""
Shared builders for ORbit scoring tests.

Cases are built in facility-local time so scheduled starts and milestone
timestamps line up the way they do in production data.
"""

import os
from datetime import date, datetime, time, timedelta
from typing import List, Optional
from zoneinfo import ZoneInfo

import pytest

from orbit_scoring.models import (
    CaseRecord,
    FinancialRecord,
    FlagRecord,
    ScorecardSettings,
)
from orbit_scoring.scoring.cohort import CohortProvider
from orbit_scoring.utils.config import reload_settings

FACILITY_TZ_NAME = "America/Chicago"
FACILITY_TZ = ZoneInfo(FACILITY_TZ_NAME)
BASE_DATE = date(2025, 3, 3)


def make_case(
    case_id: str,
    surgeon_id: str,
    procedure_id: str = "proc-tha",
    procedure_name: str = "Total Hip Arthroplasty",
    day: int = 0,
    room: str = "OR-1",
    start: Optional[time] = time(7, 30),
    start_delay: float = 0,
    duration: float = 90,
    prep_gap: float = 3,
    last_name: Optional[str] = None,
    **overrides,
) -> CaseRecord:
    """
    Build a case whose milestones follow clinical order.

    patient_in = scheduled start + start_delay, prep complete 20 min later,
    incision prep_gap min after that, patient_out `duration` min after
    patient_in.
    """
    scheduled_date = BASE_DATE + timedelta(days=day)
    scheduled_start = datetime.combine(scheduled_date, start or time(7, 30), tzinfo=FACILITY_TZ)
    patient_in = scheduled_start + timedelta(minutes=start_delay)
    prep_done = patient_in + timedelta(minutes=20)
    incision = prep_done + timedelta(minutes=prep_gap)
    patient_out = patient_in + timedelta(minutes=duration)

    data = dict(
        id=case_id,
        surgeon_id=surgeon_id,
        surgeon_first_name="Alex",
        surgeon_last_name=last_name or surgeon_id.title(),
        procedure_type_id=procedure_id,
        procedure_name=procedure_name,
        or_room_id=room,
        scheduled_date=scheduled_date,
        start_time=start,
        patient_in_at=patient_in,
        prep_drape_complete_at=prep_done,
        incision_at=incision,
        closing_at=patient_out - timedelta(minutes=10),
        patient_out_at=patient_out,
    )
    data.update(overrides)
    return CaseRecord(**data)


def make_cases(surgeon_id: str, n: int, durations: Optional[List[float]] = None, **kwargs) -> List[CaseRecord]:
    """Build n cases for one surgeon, one per day, optionally cycling durations."""
    cases = []
    for i in range(n):
        if durations:
            kwargs["duration"] = durations[i % len(durations)]
        cases.append(make_case(f"{surgeon_id}-{i}", surgeon_id, day=i, **kwargs))
    return cases


def make_financials(cases: List[CaseRecord], profit: float, total_duration_minutes: Optional[float] = None) -> List[FinancialRecord]:
    return [
        FinancialRecord(case_id=c.id, profit=profit, total_duration_minutes=total_duration_minutes)
        for c in cases
    ]


def make_delay_flags(cases: List[CaseRecord], created_by: Optional[str] = None) -> List[FlagRecord]:
    return [
        FlagRecord(case_id=c.id, flag_type="delay", severity="warning", created_by=created_by)
        for c in cases
    ]


def make_cohort(
    cases: List[CaseRecord],
    financials: Optional[List[FinancialRecord]] = None,
    flags: Optional[List[FlagRecord]] = None,
    settings: Optional[ScorecardSettings] = None,
    min_case_threshold: int = 15,
) -> CohortProvider:
    return CohortProvider(
        cases=cases,
        financials=financials or [],
        flags=flags or [],
        settings=settings or ScorecardSettings(),
        tz=FACILITY_TZ,
        min_case_threshold=min_case_threshold,
    )


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Keep ORBIT_* environment changes from leaking between tests."""
    for var in [k for k in os.environ if k.upper().startswith("ORBIT_")]:
        monkeypatch.delenv(var)
    reload_settings()
    yield
    monkeypatch.undo()
    reload_settings()


@pytest.fixture
def settings():
    return ScorecardSettings()
