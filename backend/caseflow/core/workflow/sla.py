"""
SLA status of a case in its current workflow stage.

A stage may carry an SLA (`sla_value` + `sla_unit`) and an optional warning
threshold (`sla_warning_value` + `sla_warning_unit`). Both are converted to
hours and compared with the time the case has spent in the stage.
"""

import logging
from datetime import datetime, time, timedelta

from caseflow.core.util import now
from caseflow.models import SLAState, SLAStatus, SLAUnit, WorkflowStage

logger = logging.getLogger(__name__)

BUSINESS_HOURS_PER_DAY = 8

UNIT_HOURS = {
    SLAUnit.HOURS.value: 1,
    SLAUnit.DAYS.value: 24,
    SLAUnit.BUSINESS_DAYS.value: BUSINESS_HOURS_PER_DAY,
    SLAUnit.WEEKS.value: 168,
    # 30.4 days on average
    SLAUnit.MONTHS.value: 730,
}


def convert_to_hours(value: float | None, unit: str | None) -> float | None:
    if not value or not unit:
        return None
    multiplier = UNIT_HOURS.get(unit)
    if multiplier is None:
        logger.warning(f"[convert_to_hours] Unknown SLA unit | unit={unit}")
        return None
    return value * multiplier


def business_hours_between(start: datetime, end: datetime) -> float:
    """
    Business hours between two instants.

    Only Monday to Friday count, and a full weekday is worth
    BUSINESS_HOURS_PER_DAY hours.
    """
    if end <= start:
        return 0.0

    weekday_seconds = 0.0
    cursor = start
    while cursor < end:
        next_midnight = datetime.combine(
            cursor.date() + timedelta(days=1), time.min, tzinfo=cursor.tzinfo
        )
        segment_end = min(next_midnight, end)
        if cursor.weekday() < 5:
            weekday_seconds += (segment_end - cursor).total_seconds()
        cursor = segment_end

    return weekday_seconds / 3600 * BUSINESS_HOURS_PER_DAY / 24


def calculate_sla_status(
    stage: WorkflowStage,
    entered_at: datetime | None,
    current_time: datetime | None = None,
) -> SLAStatus | None:
    """
    Returns None when the stage has no SLA or the entry time is unknown.
    """
    sla_hours = convert_to_hours(stage.sla_value, stage.sla_unit)
    if sla_hours is None or entered_at is None:
        return None

    current_time = current_time or now()
    if stage.sla_unit == SLAUnit.BUSINESS_DAYS.value:
        hours_elapsed = business_hours_between(entered_at, current_time)
    else:
        hours_elapsed = max(0.0, (current_time - entered_at).total_seconds() / 3600)

    warning_hours = convert_to_hours(stage.sla_warning_value, stage.sla_warning_unit)

    hours_overdue = 0.0
    if hours_elapsed >= sla_hours:
        status = SLAState.BREACHED
        hours_overdue = hours_elapsed - sla_hours
    elif warning_hours is not None and hours_elapsed >= warning_hours:
        status = SLAState.WARNING
    else:
        status = SLAState.ON_TIME

    return SLAStatus(
        status=status,
        hours_elapsed=round(hours_elapsed, 2),
        hours_remaining=round(max(0.0, sla_hours - hours_elapsed), 2),
        hours_overdue=round(hours_overdue, 2),
        sla_hours=sla_hours,
        warning_hours=warning_hours,
    )
