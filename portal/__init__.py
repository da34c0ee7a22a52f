"""
Client-side core of the patient dashboards.

The booking wizard, the submission flow (offline and online payment),
the live status notifier fed by the push channel and the appointment
list filter, running on ``httpx`` for REST and ``websockets`` for the
push channel.
"""
from portal.booking import BookingForm, Stage
from portal.config import PortalSettings
from portal.errors import ApiError, PaymentDismissed, PaymentFailed, PortalError, ReconciliationRequired
from portal.listing import FilterCriteria, filter_appointments, tab_counts
from portal.notifier import DashboardState, LiveStatusNotifier
from portal.page import AppointmentsPage
from portal.submission import SubmissionCoordinator

__all__ = [
    "ApiError",
    "AppointmentsPage",
    "BookingForm",
    "DashboardState",
    "FilterCriteria",
    "LiveStatusNotifier",
    "PaymentDismissed",
    "PaymentFailed",
    "PortalError",
    "PortalSettings",
    "ReconciliationRequired",
    "Stage",
    "SubmissionCoordinator",
    "filter_appointments",
    "tab_counts",
]
