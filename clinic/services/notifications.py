import logging
from typing import Optional

from django.conf import settings
from django.core.mail import send_mail

from clinic.models import Notification, PaymentOrder
from clinic.services.push import NOTIFICATION, push_event

logger = logging.getLogger(__name__)


def format_notification(n: Notification) -> dict:
    return {
        'id': n.id,
        'type': n.type,
        'message': n.message,
        'relatedId': n.related_id,
        'link': n.link,
        'read': n.read,
        'senderId': n.sender_id,
        'createdAt': n.created_at.isoformat(),
    }


def notify(recipient, ntype: str, message: str, *, sender=None, related_id='', link: str = '') -> Notification:
    """Store a notification for ``recipient`` and push it to their open sockets."""
    n = Notification.objects.create(
        recipient=recipient,
        sender=sender if getattr(sender, 'pk', None) else None,
        type=ntype,
        message=message[:255],
        related_id=str(related_id or ''),
        link=link,
    )
    push_event(NOTIFICATION, format_notification(n), user_ids=[recipient.id])
    return n


def list_notifications(user, *, unread_only: bool = False, page: int = 1, page_size: int = 20):
    qs = Notification.objects.filter(recipient=user)
    if unread_only:
        qs = qs.filter(read=False)
    total = qs.count()
    unread = Notification.objects.filter(recipient=user, read=False).count()
    page = max(1, int(page or 1))
    page_size = min(100, max(1, int(page_size or 20)))
    start = (page - 1) * page_size
    items = qs.order_by('-created_at', '-id')[start:start + page_size]
    return [format_notification(n) for n in items], total, unread


def mark_read(user, notification_id: int) -> Notification:
    n = Notification.objects.get(id=notification_id)
    if n.recipient_id != user.id:
        raise PermissionError('Not your notification')
    if not n.read:
        n.read = True
        n.save(update_fields=['read'])
    return n


def mark_all_read(user) -> int:
    return Notification.objects.filter(recipient=user, read=False).update(read=True)


def send_receipt_email(order: PaymentOrder) -> Optional[int]:
    """Email a payment receipt to the patient.

    Runs after the payment is already recorded, so a mail failure is logged
    and reported as ``None`` rather than undoing the verification.
    """
    user = order.patient.user
    if not user.email:
        return None
    doctor_name = order.doctor.user.get_full_name() or order.doctor.user.username
    body = (
        f"Hello {user.get_full_name() or user.username},\n\n"
        f"We received your payment of {order.amount / 100:.2f} {order.currency} "
        f"for a consultation with Dr. {doctor_name}.\n\n"
        f"Order: {order.order_id}\n"
        f"Payment: {order.payment_id}\n"
        f"Receipt: {order.receipt}\n"
    )
    try:
        return send_mail(
            'Payment receipt',
            body,
            settings.DEFAULT_FROM_EMAIL,
            [user.email],
            fail_silently=False,
        )
    except Exception:
        logger.warning("receipt email for order %s failed", order.order_id, exc_info=True)
        return None
