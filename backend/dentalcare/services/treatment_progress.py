"""
Treatment plan progress

Read-side figures shown on a treatment plan. Nothing computed here is stored
except through ``apply_session_progress``, which runs when a session is
recorded.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from dentalcare.models import TreatmentStatus, utcnow

SESSIONS_WEIGHT = 0.6
STATUS_WEIGHT = 0.4

STATUS_PERCENT = {
    TreatmentStatus.COMPLETED: 100,
    TreatmentStatus.IN_PROGRESS: 55,
    TreatmentStatus.PLANNED: 15,
    TreatmentStatus.CANCELLED: 0,
}

LEGACY_TREATMENT_STATUS = {
    "in_progress": TreatmentStatus.IN_PROGRESS,
    "inprogress": TreatmentStatus.IN_PROGRESS,
}


@dataclass(frozen=True)
class TreatmentProgress:
    overall_percent: int
    sessions_percent: int
    payment_percent: int
    status_percent: int
    sessions_completed: int
    planned_sessions: int
    total_cost: Decimal
    amount_paid: Decimal
    balance: Decimal
    is_manual: bool


def parse_treatment_status(value) -> TreatmentStatus:
    if isinstance(value, TreatmentStatus):
        return value
    raw = str(value or "").strip().lower()
    if raw in LEGACY_TREATMENT_STATUS:
        return LEGACY_TREATMENT_STATUS[raw]
    try:
        return TreatmentStatus(raw)
    except ValueError:
        raise ValueError(f"Unknown treatment status: {value!r}")


def clamp_percent(value) -> float:
    return max(0.0, min(100.0, float(value)))


def percent_of(part, whole) -> float:
    if whole is None or whole <= 0:
        return 0.0
    return clamp_percent(100.0 * float(part) / float(whole))


def _round(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def total_cost(plan) -> Decimal:
    if plan.actual_cost is not None:
        return Decimal(plan.actual_cost)
    if plan.estimated_cost is not None:
        return Decimal(plan.estimated_cost)
    return Decimal("0")


def compute_progress(plan) -> TreatmentProgress:
    """
    Blend sessions, payment and status into one figure.

    ``plan`` is any object with the treatment fields (ORM row or snapshot).
    A manual ``progress_percent`` replaces the headline number only; the
    session and payment figures are still reported.
    """
    planned = plan.planned_sessions or 0
    done = len(plan.sessions or [])
    cost = total_cost(plan)
    paid = Decimal(plan.paid_amount or 0) + Decimal(plan.advance_paid or 0)

    sessions_pct = percent_of(done, planned) if planned > 0 else 0.0
    payment_pct = percent_of(paid, cost)
    status_pct = STATUS_PERCENT[parse_treatment_status(plan.status)]

    manual: Optional[int] = plan.progress_percent
    if manual is not None:
        overall = _round(clamp_percent(manual))
    elif planned > 0:
        overall = _round(sessions_pct * SESSIONS_WEIGHT + status_pct * STATUS_WEIGHT)
    else:
        overall = _round(status_pct)

    return TreatmentProgress(
        overall_percent=overall,
        sessions_percent=_round(sessions_pct),
        payment_percent=_round(payment_pct),
        status_percent=status_pct,
        sessions_completed=done,
        planned_sessions=planned,
        total_cost=cost,
        amount_paid=paid,
        balance=max(Decimal("0"), cost - paid),
        is_manual=manual is not None,
    )


def apply_session_progress(plan):
    """
    Move a plan forward after a session was recorded.

    A planned plan becomes in-progress, a stored progress below the session
    ratio is raised to it, and reaching the planned count completes the plan.
    """
    planned = max(1, plan.planned_sessions or 1)
    done = len(plan.sessions or [])
    status = parse_treatment_status(plan.status)

    if done > 0 and status == TreatmentStatus.PLANNED:
        plan.status = TreatmentStatus.IN_PROGRESS.value

    from_sessions = _round(percent_of(done, planned))
    if plan.progress_percent is None or plan.progress_percent < from_sessions:
        plan.progress_percent = from_sessions

    if done >= planned:
        plan.status = TreatmentStatus.COMPLETED.value
        plan.completion_date = utcnow()
        plan.progress_percent = 100
