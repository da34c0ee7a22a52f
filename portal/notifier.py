"""
Live status notifier.

Translates push events into dashboard state changes plus a transient
notice.  Counters are bumped per event, so a duplicated delivery counts
twice; ``appointment_updated`` replaces the counters wholesale with a
fresh stats fetch instead of patching them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from portal.api import PortalAPI
from portal.channel import PushChannel
from portal.errors import ApiError
from portal.models import Appointment, Notice

logger = logging.getLogger(__name__)

APPOINTMENT_CREATED = "appointment_created"
APPOINTMENT_UPDATED = "appointment_updated"
CONSULTATION_STARTED = "consultationStarted"
CONSULTATION_ENDED = "consultationEnded"
PRESCRIPTION_CREATED = "prescriptionCreated"
MEDICAL_RECORD_UPDATED = "medical_record_updated"


@dataclass
class DashboardState:
    pending_count: int = 0
    prescription_count: int = 0
    records_count: int = 0
    active_consultation: bool = False
    active_consultation_id: Optional[int] = None
    stats: dict[str, Any] = field(default_factory=dict)
    appointments: list[Appointment] = field(default_factory=list)

    def apply_stats(self, stats: dict[str, Any]) -> None:
        self.stats = dict(stats)
        self.pending_count = stats.get("pendingAppointments", self.pending_count)
        self.prescription_count = stats.get("prescriptions", self.prescription_count)
        self.records_count = stats.get("records", self.records_count)
        if "activeConsultation" in stats:
            self.active_consultation = bool(stats["activeConsultation"])

    def replace_appointment(self, updated: Appointment) -> bool:
        for i, current in enumerate(self.appointments):
            if current.id == updated.id:
                self.appointments[i] = updated
                return True
        return False


class LiveStatusNotifier:
    def __init__(
        self,
        channel: PushChannel,
        api: PortalAPI,
        state: DashboardState,
        notify: Callable[[Notice], None],
        results_link: str = "/patient/consultations/{id}",
        records_link: str = "/patient/records",
    ):
        self.channel = channel
        self.api = api
        self.state = state
        self.notify = notify
        self.results_link = results_link
        self.records_link = records_link
        self.mounted = False
        self._handlers = {
            APPOINTMENT_CREATED: self.on_appointment_created,
            APPOINTMENT_UPDATED: self.on_appointment_updated,
            CONSULTATION_STARTED: self.on_consultation_started,
            CONSULTATION_ENDED: self.on_consultation_ended,
            PRESCRIPTION_CREATED: self.on_prescription_created,
            MEDICAL_RECORD_UPDATED: self.on_medical_record_updated,
        }

    def mount(self) -> None:
        if self.mounted:
            return
        for event, handler in self._handlers.items():
            self.channel.on(event, handler)
        self.mounted = True

    def unmount(self) -> None:
        if not self.mounted:
            return
        for event, handler in self._handlers.items():
            self.channel.off(event, handler)
        self.mounted = False

    async def on_appointment_created(self, data: dict) -> None:
        self.state.pending_count += 1
        self.notify(Notice("info", "New appointment request received"))

    async def on_appointment_updated(self, data: dict) -> None:
        try:
            self.state.apply_stats(await self.api.stats())
        except ApiError as e:
            self.notify(Notice("error", e.message))
        if data.get("id") is not None:
            try:
                self.state.replace_appointment(Appointment.from_api(data))
            except (KeyError, ValueError):
                logger.warning("unparseable appointment in update event: %r", data.get("id"))
        self.notify(Notice("info", "Appointment updated"))

    async def on_consultation_started(self, data: dict) -> None:
        self.state.active_consultation = True
        self.state.active_consultation_id = data.get("consultationId")
        self.notify(Notice("info", "Your consultation has started"))

    async def on_consultation_ended(self, data: dict) -> None:
        consultation_id = data.get("consultationId")
        self.state.active_consultation = False
        self.state.active_consultation_id = None
        link = self.results_link.format(id=consultation_id) if consultation_id is not None else None
        self.notify(Notice("info", "Your consultation has ended. View results.", link=link))

    async def on_prescription_created(self, data: dict) -> None:
        self.state.prescription_count += 1
        self.notify(Notice("info", "A new prescription is available"))

    async def on_medical_record_updated(self, data: dict) -> None:
        if data.get("action", "created") == "created":
            self.state.records_count += 1
            message = "A new medical record was added"
        else:
            message = "Your medical record was updated"
        self.notify(Notice("info", message, link=self.records_link))
