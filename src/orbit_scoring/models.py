"""
Pydantic schemas for the ORbit scoring engine

Defines structured data models for:
- Surgical case, financial, and flag input records
- Facility scoring settings
- Scorecard output with pillar scores, grade, and trend
- Optional per-pillar diagnostics
"""

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class StartMilestone(str, Enum):
    """Milestone that marks the actual start of a case for adherence"""
    PATIENT_IN = "patient_in"
    INCISION = "incision"


class Trend(str, Enum):
    """Composite direction versus the previous period"""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


# ============================================================
# Input Records
# ============================================================

class CaseRecord(BaseModel):
    """One surgical case with its milestone timestamps"""
    id: str = Field(..., description="Case ID")
    surgeon_id: str = Field(..., description="Owning surgeon ID")
    surgeon_first_name: str = Field("", description="Surgeon first name")
    surgeon_last_name: str = Field("", description="Surgeon last name")
    procedure_type_id: str = Field(..., description="Procedure type ID")
    procedure_name: Optional[str] = Field(None, description="Procedure display name")
    or_room_id: str = Field(..., description="Operating room ID")
    scheduled_date: date = Field(..., description="Scheduled calendar date")
    start_time: Optional[time] = Field(None, description="Scheduled start time-of-day (facility local)")

    # Milestones, None = not yet recorded
    patient_in_at: Optional[datetime] = Field(None)
    incision_at: Optional[datetime] = Field(None)
    prep_drape_complete_at: Optional[datetime] = Field(None)
    closing_at: Optional[datetime] = Field(None)
    patient_out_at: Optional[datetime] = Field(None)

    @field_validator(
        "patient_in_at",
        "incision_at",
        "prep_drape_complete_at",
        "closing_at",
        "patient_out_at",
    )
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Milestones without an offset are recorded in UTC."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def display_procedure(self) -> str:
        return self.procedure_name or self.procedure_type_id


class FinancialRecord(BaseModel):
    """Per-case financials (optional join on case_id)"""
    case_id: str = Field(...)
    profit: Optional[float] = Field(None, description="Signed profit; 0 is break-even, None is missing")
    reimbursement: Optional[float] = Field(None)
    or_time_cost: Optional[float] = Field(None)
    total_duration_minutes: Optional[float] = Field(None, description="Total case duration in minutes")


class FlagRecord(BaseModel):
    """A flag raised on a case"""
    case_id: str = Field(...)
    flag_type: str = Field(..., description="Flag category, e.g. 'delay'")
    severity: Optional[str] = Field(None)
    delay_type_name: Optional[str] = Field(None)
    created_by: Optional[str] = Field(None, description="None = system-detected, else user ID")

    @property
    def is_delay(self) -> bool:
        return self.flag_type == "delay"

    @property
    def is_system_detected(self) -> bool:
        return self.created_by is None


# ============================================================
# Settings & Input Envelope
# ============================================================

class ScorecardSettings(BaseModel):
    """Facility-level analytics settings"""
    start_time_milestone: StartMilestone = Field(StartMilestone.PATIENT_IN)
    start_time_grace_minutes: float = Field(3, ge=0)
    start_time_floor_minutes: float = Field(20, gt=0)
    waiting_on_surgeon_minutes: float = Field(3, ge=0, description="Expected prep-to-incision gap")
    waiting_on_surgeon_floor_minutes: float = Field(10, gt=0)
    min_procedure_cases: int = Field(3, ge=1, description="Minimum cases to form a procedure cohort")
    gate_peer_cohorts: bool = Field(
        False,
        description="Only surgeons meeting the eligibility threshold contribute to peer cohorts",
    )


class DateRange(BaseModel):
    """Period label, carried through for display only"""
    start: str
    end: str


class ScorecardInput(BaseModel):
    """Everything one scoring pass needs"""
    cases: List[CaseRecord] = Field(default_factory=list)
    financials: List[FinancialRecord] = Field(default_factory=list)
    flags: List[FlagRecord] = Field(default_factory=list)
    settings: Optional[ScorecardSettings] = Field(
        None,
        description="Facility analytics settings; None falls back to the configured ORBIT_* defaults",
    )
    date_range: Optional[DateRange] = Field(None)
    timezone: Optional[str] = Field(None, description="IANA timezone; defaults from configuration")

    previous_period_cases: Optional[List[CaseRecord]] = Field(None)
    previous_period_financials: Optional[List[FinancialRecord]] = Field(None)
    previous_period_flags: Optional[List[FlagRecord]] = Field(None)

    enable_diagnostics: bool = Field(False)

    @property
    def has_previous_period(self) -> bool:
        return bool(self.previous_period_cases)


# ============================================================
# Output
# ============================================================

class PillarScores(BaseModel):
    """The four 0-100 pillar scores"""
    profitability: int = Field(50)
    consistency: int = Field(50)
    sched_adherence: int = Field(50)
    availability: int = Field(50)

    def as_dict(self) -> Dict[str, int]:
        return self.model_dump()


class GradeInfo(BaseModel):
    """Letter grade with display colors"""
    letter: str
    label: str
    text: str = Field(..., description="Text color")
    bg: str = Field(..., description="Background color")


class ProcedureCount(BaseModel):
    name: str
    count: int


class ProcedureCohortDiagnostic(BaseModel):
    """One procedure-type cohort comparison (profitability or consistency)"""
    procedure_id: str
    procedure_name: str
    surgeon_value: float = Field(0.0, description="Median MPM or duration CV")
    cohort_median: float = Field(0.0, description="Median of peer values")
    cohort_size: int = Field(0, description="Number of qualifying peers")
    percentile: float = Field(0.0)
    valid_cases: int = Field(0)
    total_cases: int = Field(0)
    score: int = Field(0)
    skipped_reason: Optional[str] = Field(None)


class CohortPillarDiagnostics(BaseModel):
    procedure_cohorts: List[ProcedureCohortDiagnostic] = Field(default_factory=list)
    final_score: int = Field(50)
    method: str = Field("")


class AdherenceDiagnostics(BaseModel):
    total_cases_scored: int = Field(0)
    avg_case_score: float = Field(0.0)
    raw_score: float = Field(0.0)
    cases_within_grace: int = Field(0)
    cases_at_zero: int = Field(0)
    cohort_size: int = Field(0)
    final_score: int = Field(50)


class AvailabilityDiagnostics(BaseModel):
    gap_cases_scored: int = Field(0)
    avg_gap_score: float = Field(0.0)
    delay_rate: float = Field(0.0)
    delayed_cases: int = Field(0)
    gap_pillar_score: int = Field(50)
    delay_pillar_score: int = Field(50)
    final_score: int = Field(50)


class PillarDiagnostics(BaseModel):
    profitability: CohortPillarDiagnostics
    consistency: CohortPillarDiagnostics
    sched_adherence: AdherenceDiagnostics
    availability: AvailabilityDiagnostics


class Scorecard(BaseModel):
    """ORbit scorecard for one eligible surgeon"""
    surgeon_id: str
    surgeon_name: str
    first_name: str = ""
    last_name: str = ""
    case_count: int
    procedures: List[str] = Field(default_factory=list)
    procedure_breakdown: List[ProcedureCount] = Field(default_factory=list)
    flip_room: bool = False
    pillars: PillarScores
    composite: int
    grade: GradeInfo
    trend: Trend = Trend.STABLE
    previous_composite: Optional[int] = None
    diagnostics: Optional[PillarDiagnostics] = None
