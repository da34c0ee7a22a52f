"""
Booking wizard controller.

Three ordered stages, each with its own record and a pure completeness
predicate.  Going forward requires the current stage to be complete;
going back is always allowed and keeps what was entered.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from datetime import date
from typing import Callable, Optional

from portal.models import OFFLINE, ONLINE, BookingRequest


class Stage(enum.IntEnum):
    SELECT_DOCTOR = 0
    SCHEDULE_TIME = 1
    PAYMENT = 2


@dataclass(frozen=True)
class DoctorStep:
    doctor_id: Optional[int] = None
    reason: str = ""
    notes: str = ""


@dataclass(frozen=True)
class ScheduleStep:
    date: Optional[date] = None
    time: str = ""


@dataclass(frozen=True)
class PaymentStep:
    payment_mode: str = OFFLINE


def doctor_step_complete(step: DoctorStep) -> bool:
    return bool(step.doctor_id) and bool(step.reason.strip())


def schedule_step_complete(step: ScheduleStep, today: date) -> bool:
    return step.date is not None and bool(step.time.strip()) and step.date >= today


def payment_step_complete(step: PaymentStep) -> bool:
    return step.payment_mode in (ONLINE, OFFLINE)


class BookingForm:
    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today
        self.reset()

    def reset(self) -> None:
        """Back to the first stage with every field cleared."""
        self.stage = Stage.SELECT_DOCTOR
        self.doctor = DoctorStep()
        self.schedule = ScheduleStep()
        self.payment = PaymentStep()

    @property
    def min_date(self) -> date:
        return self._today()

    def update_doctor(self, **changes) -> None:
        self.doctor = replace(self.doctor, **changes)

    def update_schedule(self, **changes) -> None:
        self.schedule = replace(self.schedule, **changes)

    def update_payment(self, **changes) -> None:
        self.payment = replace(self.payment, **changes)

    def stage_complete(self, stage: Optional[Stage] = None) -> bool:
        stage = self.stage if stage is None else stage
        if stage is Stage.SELECT_DOCTOR:
            return doctor_step_complete(self.doctor)
        if stage is Stage.SCHEDULE_TIME:
            return schedule_step_complete(self.schedule, self.min_date)
        return payment_step_complete(self.payment)

    @property
    def can_advance(self) -> bool:
        return self.stage is not Stage.PAYMENT and self.stage_complete()

    @property
    def can_submit(self) -> bool:
        return self.stage is Stage.PAYMENT and all(self.stage_complete(s) for s in Stage)

    def advance(self) -> bool:
        if not self.can_advance:
            return False
        self.stage = Stage(self.stage + 1)
        return True

    def back(self) -> bool:
        if self.stage is Stage.SELECT_DOCTOR:
            return False
        self.stage = Stage(self.stage - 1)
        return True

    def submission(self, patient_id: int) -> BookingRequest:
        if not self.can_submit:
            raise ValueError("booking form is not complete")
        return BookingRequest(
            patient_id=patient_id,
            doctor_id=self.doctor.doctor_id,
            date=self.schedule.date,
            time=self.schedule.time.strip(),
            reason=self.doctor.reason.strip(),
            notes=self.doctor.notes,
            payment_mode=self.payment.payment_mode,
        )
