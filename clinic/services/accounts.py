from typing import Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist

from clinic.models import Doctor, PatientProfile

User = get_user_model()


def is_admin(user) -> bool:
    return getattr(user, 'role', '') == User.ROLE_ADMIN


def is_doctor(user) -> bool:
    return getattr(user, 'role', '') == User.ROLE_DOCTOR


def is_patient(user) -> bool:
    return getattr(user, 'role', '') == User.ROLE_PATIENT


def doctor_profile(user) -> Optional[Doctor]:
    try:
        return user.doctor_profile
    except (ObjectDoesNotExist, AttributeError):
        return None


def patient_profile(user) -> Optional[PatientProfile]:
    try:
        return user.patient_profile
    except (ObjectDoesNotExist, AttributeError):
        return None


def format_user_summary(user) -> dict:
    return {
        'id': user.id,
        'firstName': user.first_name,
        'lastName': user.last_name,
        'name': user.get_full_name() or user.username,
        'email': user.email,
        'phone': user.phone,
    }
