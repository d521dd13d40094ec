# hospitals/signals.py
"""
Signals to notify the hospital when a blood request is created
"""
import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from hospitals.models import BloodRequest
from hospitals.notifications import DispatchEvent, emit_notification

logger = logging.getLogger(__name__)


@receiver(post_save, sender=BloodRequest)
def blood_request_created(sender, instance, created, **kwargs):
    """
    Record a "Blood Request Created" event for every new request
    """
    if not created:
        return

    emit_notification(DispatchEvent(
        type='info',
        title='Blood Request Created',
        message=f"Blood request #{instance.id} created for {instance.quantity} units of {instance.blood_group}",
        hospital_id=instance.hospital_id,
        blood_request_id=instance.id,
        extra={'urgency': instance.urgency},
    ))
    logger.info(f"Blood request #{instance.id} created ({instance.blood_group}, {instance.urgency})")
