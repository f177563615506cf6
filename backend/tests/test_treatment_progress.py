from decimal import Decimal
from types import SimpleNamespace

import pytest

from dentalcare.models import TreatmentStatus
from dentalcare.services.treatment_progress import (
    apply_session_progress, compute_progress, parse_treatment_status
)


def make_plan(**overrides):
    plan = dict(
        status="planned",
        planned_sessions=4,
        sessions=[],
        estimated_cost=None,
        actual_cost=None,
        paid_amount=Decimal("0"),
        advance_paid=Decimal("0"),
        progress_percent=None,
        completion_date=None,
    )
    plan.update(overrides)
    return SimpleNamespace(**plan)


def test_blended_progress():
    plan = make_plan(
        status="in-progress",
        sessions=[object(), object()],
        actual_cost=Decimal("1000"),
        paid_amount=Decimal("250"),
    )
    progress = compute_progress(plan)
    assert progress.sessions_percent == 50
    assert progress.payment_percent == 25
    assert progress.status_percent == 55
    assert progress.overall_percent == 52
    assert progress.balance == Decimal("750")
    assert not progress.is_manual


def test_manual_override_replaces_headline_only():
    plan = make_plan(status="in-progress", sessions=[object()], progress_percent=80)
    progress = compute_progress(plan)
    assert progress.overall_percent == 80
    assert progress.sessions_percent == 25
    assert progress.is_manual


def test_no_planned_sessions_uses_status_alone():
    progress = compute_progress(make_plan(planned_sessions=0, status="planned"))
    assert progress.sessions_percent == 0
    assert progress.overall_percent == 15


def test_advance_counts_towards_payment_and_estimate_is_fallback_cost():
    plan = make_plan(estimated_cost=Decimal("400"), paid_amount=Decimal("100"), advance_paid=Decimal("100"))
    assert compute_progress(plan).payment_percent == 50


def test_percentages_are_clamped():
    plan = make_plan(
        planned_sessions=2,
        sessions=[object()] * 3,
        actual_cost=Decimal("100"),
        paid_amount=Decimal("500"),
    )
    progress = compute_progress(plan)
    assert progress.sessions_percent == 100
    assert progress.payment_percent == 100


def test_legacy_in_progress_spelling():
    assert parse_treatment_status("in_progress") == TreatmentStatus.IN_PROGRESS
    with pytest.raises(ValueError):
        parse_treatment_status("done")


def test_first_session_starts_the_plan():
    plan = make_plan(sessions=[object()])
    apply_session_progress(plan)
    assert plan.status == "in-progress"
    assert plan.progress_percent == 25


def test_last_session_completes_the_plan():
    plan = make_plan(planned_sessions=2, status="in-progress", sessions=[object(), object()])
    apply_session_progress(plan)
    assert plan.status == "completed"
    assert plan.progress_percent == 100
    assert plan.completion_date is not None


def test_higher_stored_progress_is_kept():
    plan = make_plan(status="in-progress", sessions=[object()], progress_percent=60)
    apply_session_progress(plan)
    assert plan.progress_percent == 60
