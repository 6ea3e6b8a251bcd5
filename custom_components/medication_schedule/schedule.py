"""Dose status scheduling and reconciliation.

Everything here is pure: functions take the medication collection and the
current time-of-day and return new values. Times are "HH:MM" strings in
24-hour format, compared as same-day minute-of-day values with no
wraparound.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, StrEnum
from typing import TYPE_CHECKING, Iterable, Sequence

from .const import DUE_GRACE_MINUTES, DUE_LEAD_MINUTES, NO_PENDING_DOSE
from .exceptions import MalformedTime

if TYPE_CHECKING:
    from .models import Medication


class DoseStatus(StrEnum):
    """Derived status of one dose slot. Never persisted."""

    DUE = "due"
    OVERDUE = "overdue"
    TAKEN = "taken"
    UPCOMING = "upcoming"


# Most urgent first; used to summarize a medication with several doses
STATUS_PRIORITY = (DoseStatus.DUE, DoseStatus.OVERDUE, DoseStatus.UPCOMING, DoseStatus.TAKEN)


def parse_time(value: str) -> str:
    """Validate an H:MM / HH:MM value and return it zero-padded."""
    if not isinstance(value, str):
        raise MalformedTime(f"Invalid time format: {value!r}")
    try:
        hh, mm = value.strip().split(":")
        if not all(p.isascii() and p.isdigit() for p in (hh, mm)):
            raise ValueError(value)
        hhi = int(hh)
        mmi = int(mm)
    except ValueError as err:
        raise MalformedTime(f"Invalid time format: {value}") from err
    if not (0 <= hhi <= 23 and 0 <= mmi <= 59):
        raise MalformedTime(f"Invalid time value: {value}")
    return f"{hhi:02d}:{mmi:02d}"


def parse_times(value: str | Iterable[str]) -> list[str]:
    """Parse a comma separated string or a list of times; keep order and repeats."""
    if isinstance(value, str):
        items = [v.strip() for v in value.split(",")]
    else:
        items = [str(v).strip() for v in value]
    return [parse_time(t) for t in items if t]


def minutes_of(value: str) -> int:
    hh, mm = value.split(":")
    return int(hh) * 60 + int(mm)


def classify(scheduled: str, taken: bool, current: str) -> DoseStatus:
    """Return the status of a dose scheduled at ``scheduled`` as seen at ``current``."""
    if taken:
        return DoseStatus.TAKEN
    scheduled_minutes = minutes_of(scheduled)
    current_minutes = minutes_of(current)
    if scheduled_minutes - DUE_LEAD_MINUTES <= current_minutes < scheduled_minutes + DUE_GRACE_MINUTES:
        return DoseStatus.DUE
    if scheduled < current:
        return DoseStatus.OVERDUE
    return DoseStatus.UPCOMING


def summarize(statuses: Iterable[DoseStatus]) -> DoseStatus | None:
    """Pick the most urgent status, or None when there are no doses."""
    present = set(statuses)
    for status in STATUS_PRIORITY:
        if status in present:
            return status
    return None


def next_pending_time(medication: Medication, current: str) -> str | None:
    """Earliest untaken, non-overdue dose time, if any."""
    pending = [
        dose.time
        for dose in medication.doses
        if not dose.taken and classify(dose.time, dose.taken, current) is not DoseStatus.OVERDUE
    ]
    return min(pending) if pending else None


def next_dose_key(medication: Medication, current: str) -> str:
    """Ordering key: next pending time, NO_PENDING_DOSE when there is none."""
    return next_pending_time(medication, current) or NO_PENDING_DOSE


def order_medications(medications: Sequence[Medication], current: str) -> list[Medication]:
    """Order medications by their next actionable dose; ties keep insertion order."""
    return sorted(medications, key=lambda med: next_dose_key(med, current))


class ToggleOutcome(Enum):
    TOGGLED = "toggled"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ToggleResult:
    medications: tuple[Medication, ...]
    outcome: ToggleOutcome

    @property
    def found(self) -> bool:
        return self.outcome is ToggleOutcome.TOGGLED


def toggle_dose(medications: Sequence[Medication], medication_id: str, dose_id: str) -> ToggleResult:
    """Flip the taken flag of exactly one dose slot."""
    updated: list[Medication] = []
    outcome = ToggleOutcome.NOT_FOUND
    for med in medications:
        if med.id == medication_id and outcome is ToggleOutcome.NOT_FOUND:
            doses = []
            for dose in med.doses:
                if dose.id == dose_id and outcome is ToggleOutcome.NOT_FOUND:
                    dose = replace(dose, taken=not dose.taken)
                    outcome = ToggleOutcome.TOGGLED
                doses.append(dose)
            med = replace(med, doses=tuple(doses))
        updated.append(med)
    if outcome is ToggleOutcome.NOT_FOUND:
        return ToggleResult(tuple(medications), outcome)
    return ToggleResult(tuple(updated), outcome)


def reset_all_taken(medications: Sequence[Medication]) -> tuple[Medication, ...]:
    return tuple(
        replace(med, doses=tuple(replace(dose, taken=False) for dose in med.doses))
        for med in medications
    )


@dataclass(frozen=True)
class ResetResult:
    medications: tuple[Medication, ...]
    last_reset_day: str
    fired: bool


def trigger_daily_reset_if_needed(
    medications: Sequence[Medication], today: str, last_reset_day: str | None
) -> ResetResult:
    """Clear every taken flag once per calendar day.

    ``today`` and ``last_reset_day`` are ISO dates. The reset fires whenever
    the observed day differs from the last reset day, so a day boundary that
    passed while nothing was observing still produces exactly one reset. On
    the very first observation the day is only recorded: flags set before
    that belong to the current day.
    """
    if last_reset_day is None:
        return ResetResult(tuple(medications), today, False)
    if last_reset_day == today:
        return ResetResult(tuple(medications), last_reset_day, False)
    return ResetResult(reset_all_taken(medications), today, True)
