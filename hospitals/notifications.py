# hospitals/notifications.py
"""
Event emission for dispatch outcomes.

emit_notification() stores a DispatchNotification and fires the
notification_emitted signal; whatever pushes events to the hospital's
dashboard subscribes to that signal. Emission never raises.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from django.db import DatabaseError, transaction
from django.dispatch import Signal

from hospitals.models import DispatchNotification

logger = logging.getLogger(__name__)

# Sent with notification=<DispatchNotification> after each stored event
notification_emitted = Signal()


@dataclass(frozen=True)
class DispatchEvent:
    type: str
    title: str
    message: str
    hospital_id: int
    blood_request_id: Optional[int] = None
    donor_id: Optional[int] = None
    extra: dict = field(default_factory=dict)

    @property
    def meta(self):
        meta = {'bloodRequestId': self.blood_request_id}
        if self.donor_id is not None:
            meta['donorId'] = self.donor_id
        meta.update(self.extra)
        return meta


def emit_notification(event):
    try:
        with transaction.atomic():
            notification = DispatchNotification.objects.create(
                hospital_id=event.hospital_id,
                type=event.type,
                title=event.title,
                message=event.message,
                meta=event.meta,
                donor_id=event.donor_id,
                blood_request_id=event.blood_request_id,
            )
    except DatabaseError as e:
        logger.error(f"Failed to store notification '{event.title}': {e}")
        return None

    for receiver, result in notification_emitted.send_robust(sender=DispatchNotification, notification=notification):
        if isinstance(result, Exception):
            logger.error(f"Notification broadcast via {receiver!r} failed: {result}")

    return notification
