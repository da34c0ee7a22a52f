"""
Appointments page: owns the data and wires the pieces together.

``load`` waits for appointments and doctors together so the view only
becomes interactive once both are in.  Requests are not cancelled on
``close``; a response arriving afterwards is dropped.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Optional

from portal.api import PortalAPI
from portal.booking import BookingForm
from portal.channel import PushChannel
from portal.checkout import CheckoutWidget
from portal.config import PortalSettings
from portal.errors import ApiError
from portal.listing import FilterCriteria, filter_appointments, tab_counts
from portal.models import Appointment, Doctor, Notice
from portal.notifier import DashboardState, LiveStatusNotifier
from portal.submission import SubmissionCoordinator

logger = logging.getLogger(__name__)


class AppointmentsPage:
    def __init__(
        self,
        api: PortalAPI,
        channel: PushChannel,
        checkout: CheckoutWidget,
        patient_id: int,
        settings: Optional[PortalSettings] = None,
    ):
        self.api = api
        self.channel = channel
        self.patient_id = patient_id
        self.settings = settings or PortalSettings()
        self.state = DashboardState()
        self.doctors: list[Doctor] = []
        self.criteria = FilterCriteria()
        self.notices: list[Notice] = []
        self.loading = False
        self.closed = False
        self.form = BookingForm()
        self.coordinator = SubmissionCoordinator(
            api, self.form, checkout, notify=self.notices.append, on_booked=self._on_booked,
        )
        self.notifier = LiveStatusNotifier(channel, api, self.state, self.notices.append)

    @property
    def appointments(self) -> list[Appointment]:
        return self.state.appointments

    @property
    def visible(self) -> list[Appointment]:
        return filter_appointments(self.appointments, self.criteria)

    @property
    def counts(self) -> dict[str, int]:
        return tab_counts(self.appointments, self.criteria)

    def update_criteria(self, **changes) -> None:
        self.criteria = replace(self.criteria, **changes)

    def mount(self) -> None:
        self.closed = False
        self.notifier.mount()

    def close(self) -> None:
        self.notifier.unmount()
        self.closed = True

    async def load(self) -> None:
        self.loading = True
        try:
            appointments, doctors = await asyncio.gather(
                self.api.list_appointments(limit=self.settings.appointments_limit),
                self.api.list_doctors(limit=self.settings.doctors_limit),
            )
        except ApiError as e:
            self.notices.append(Notice("error", e.message))
            return
        finally:
            self.loading = False
        if self.closed:
            logger.debug("page closed before load finished; dropping response")
            return
        self.state.appointments[:] = appointments
        self.doctors = doctors

    async def refresh(self) -> None:
        try:
            appointments = await self.api.list_appointments(limit=self.settings.appointments_limit)
        except ApiError as e:
            self.notices.append(Notice("error", e.message))
            return
        if not self.closed:
            self.state.appointments[:] = appointments

    async def _on_booked(self, appointment: Appointment) -> None:
        await self.refresh()

    async def submit(self) -> Optional[Appointment]:
        return await self.coordinator.submit(self.patient_id)

    async def cancel(self, appointment_id: int, reason: str = "") -> Optional[Appointment]:
        try:
            updated = await self.api.update_status(appointment_id, "cancelled", cancel_reason=reason)
        except ApiError as e:
            self.notices.append(Notice("error", e.message))
            return None
        self.state.replace_appointment(updated)
        self.notices.append(Notice("success", "Appointment cancelled"))
        return updated

    def dismiss(self, notice: Notice) -> None:
        if notice in self.notices and notice.dismissible:
            self.notices.remove(notice)
