from typing import Optional

from django.db.models import Q

from clinic.models import Doctor
from clinic.services.accounts import format_user_summary


def format_doctor(d: Doctor) -> dict:
    return {
        'id': d.id,
        'user': format_user_summary(d.user),
        'specialization': d.specialization,
        'department': d.department,
        'experience': d.experience,
        'consultationFee': d.consultation_fee,
        'bio': d.bio,
    }


def list_doctors(*, q: Optional[str] = None, specialization: Optional[str] = None,
                 page: int = 1, limit: int = 50) -> tuple[list[dict], int]:
    qs = Doctor.objects.select_related('user').filter(user__is_active=True)
    if q:
        qs = qs.filter(
            Q(user__first_name__icontains=q)
            | Q(user__last_name__icontains=q)
            | Q(user__username__icontains=q)
            | Q(specialization__icontains=q)
        )
    if specialization:
        qs = qs.filter(specialization__iexact=specialization)

    total = qs.count()
    page = max(1, int(page or 1))
    limit = min(100, max(1, int(limit or 50)))
    start = (page - 1) * limit
    qs = qs.order_by('user__first_name', 'user__last_name', 'id')[start:start + limit]
    return [format_doctor(d) for d in qs], total
