"""
Appointment list filtering and tab counts.

Each filter is an independent predicate, so the order they are applied
in does not change the result.  Tab counts are taken after the text,
type and payment filters but before the tab filter.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from portal.models import Appointment

ALL = "all"
UPCOMING = "upcoming"
PAST = "past"
CANCELLED = "cancelled"
TABS = (UPCOMING, PAST, CANCELLED)

TAB_STATUSES = {
    UPCOMING: frozenset({"scheduled", "confirmed", "pending"}),
    PAST: frozenset({"completed"}),
    CANCELLED: frozenset({"cancelled", "no-show"}),
}


@dataclass(frozen=True)
class FilterCriteria:
    query: str = ""
    type: str = ALL
    payment: str = ALL
    tab: str = UPCOMING


def matches_query(appointment: Appointment, query: str) -> bool:
    q = query.lower()
    if not q:
        return True
    return any(q in (text or "").lower() for text in
               (appointment.doctor_name, appointment.specialization, appointment.reason))


def matches_type(appointment: Appointment, type_filter: str) -> bool:
    return type_filter == ALL or appointment.type == type_filter


def matches_payment(appointment: Appointment, payment_filter: str) -> bool:
    return payment_filter == ALL or appointment.payment_mode == payment_filter


def in_tab(appointment: Appointment, tab: str) -> bool:
    return appointment.status in TAB_STATUSES.get(tab, frozenset())


def _base_filter(appointments: Iterable[Appointment], criteria: FilterCriteria) -> list[Appointment]:
    return [
        a for a in appointments
        if matches_query(a, criteria.query)
        and matches_type(a, criteria.type)
        and matches_payment(a, criteria.payment)
    ]


def filter_appointments(appointments: Iterable[Appointment], criteria: FilterCriteria) -> list[Appointment]:
    """Visible appointments for the active tab, sorted by date."""
    result = [a for a in _base_filter(appointments, criteria) if in_tab(a, criteria.tab)]
    return sorted(result, key=lambda a: a.date, reverse=criteria.tab != UPCOMING)


def tab_counts(appointments: Iterable[Appointment], criteria: FilterCriteria) -> dict[str, int]:
    base = _base_filter(appointments, criteria)
    return {tab: sum(1 for a in base if in_tab(a, tab)) for tab in TABS}
