"""Server side of the push channel.

Events travel over the channel layer to every ``NotificationsConsumer``
joined to the target groups; each socket receives them in the order they
were sent to its groups.  There is no dedupe: a user reached through two
groups gets the event twice.
"""
import logging
from typing import Iterable

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

APPOINTMENT_CREATED = 'appointment_created'
APPOINTMENT_UPDATED = 'appointment_updated'
CONSULTATION_STARTED = 'consultationStarted'
CONSULTATION_ENDED = 'consultationEnded'
PRESCRIPTION_CREATED = 'prescriptionCreated'
MEDICAL_RECORD_UPDATED = 'medical_record_updated'
NOTIFICATION = 'notification'


def user_group(user_id) -> str:
    return f"user.{user_id}"


def role_group(role: str) -> str:
    return f"role.{role}"


def push_event(event: str, data: dict, *, user_ids: Iterable[int] = (), roles: Iterable[str] = ()) -> int:
    """Send ``event`` to the given users and roles; return the number of groups reached."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return 0
    groups = [user_group(uid) for uid in dict.fromkeys(user_ids) if uid]
    groups += [role_group(r) for r in dict.fromkeys(roles)]
    message = {"type": "push.event", "event": event, "data": data}
    sent = 0
    for group in groups:
        try:
            async_to_sync(channel_layer.group_send)(group, message)
            sent += 1
        except Exception:
            logger.warning("push of %s to %s failed", event, group, exc_info=True)
    return sent
