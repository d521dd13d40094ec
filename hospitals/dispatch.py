# hospitals/dispatch.py
"""
SMS dispatch for a new blood request.

plan_dispatch() and the event builders are pure: they decide who gets a
message and what gets reported. TokenDispatcher performs the side effects
(token rows, SMS, notifications) one donor at a time, so a failure for one
donor never stops the rest of the batch.
"""
import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.db import transaction

from algorithms.blood_compatibility import is_compatible
from donors.models import Donor, ResponseToken
from donors.sms import get_sms_backend
from hospitals.notifications import DispatchEvent, emit_notification

logger = logging.getLogger(__name__)


@dataclass
class DispatchPlan:
    blood_group: str
    recipients: list = field(default_factory=list)
    skipped: list = field(default_factory=list)  # compatible, but no phone on file

    @property
    def total_donors(self):
        return len(self.recipients) + len(self.skipped)


@dataclass
class DispatchSummary:
    blood_group: str
    total_donors: int = 0
    sms_delivered: int = 0
    sms_failed: int = 0
    skipped: int = 0

    def as_sms_status(self):
        return {
            'totalDonors': self.total_donors,
            'smsDelivered': self.sms_delivered,
            'smsFailed': self.sms_failed,
            'skipped': self.skipped,
            'bloodGroup': self.blood_group,
        }


def plan_dispatch(blood_group, donors):
    """
    Pick the donors to message for a request.

    Args:
        blood_group: Requested blood group
        donors: Donor registry, already in a stable order

    Returns:
        DispatchPlan
    """
    plan = DispatchPlan(blood_group=blood_group)

    for donor in donors:
        if not donor.blood_group:
            logger.warning(f"Donor #{donor.id} ({donor.name or '[no name]'}) has no blood group on file")
            continue
        if not is_compatible(blood_group, donor.blood_group):
            continue
        if donor.phone:
            plan.recipients.append(donor)
        else:
            plan.skipped.append(donor)

    return plan


def response_link(token):
    return f"{settings.RESPONSE_LINK_BASE_URL}/r/{token}"


def compose_message(blood_request, hospital_name, link):
    return (
        f"Urgent: {blood_request.quantity} units {blood_request.blood_group} "
        f"needed at {hospital_name}. Respond: {link}"
    )


# ============================================
# EVENT BUILDERS
# ============================================
def sms_sent_event(blood_request, donor):
    return DispatchEvent(
        type='info',
        title='SMS Sent',
        message=f"SMS sent to {donor.name} ({blood_request.blood_group})",
        hospital_id=blood_request.hospital_id,
        blood_request_id=blood_request.id,
        donor_id=donor.id,
    )


def sms_failed_event(blood_request, donor):
    return DispatchEvent(
        type='error',
        title='SMS Failed',
        message=f"Failed to send SMS to {donor.name}",
        hospital_id=blood_request.hospital_id,
        blood_request_id=blood_request.id,
        donor_id=donor.id,
    )


def dispatch_complete_event(blood_request, summary):
    return DispatchEvent(
        type='success',
        title='SMS Dispatch Complete',
        message=f"{summary.sms_delivered}/{summary.total_donors} SMS delivered for {summary.blood_group}",
        hospital_id=blood_request.hospital_id,
        blood_request_id=blood_request.id,
        extra={'delivered': summary.sms_delivered, 'total': summary.total_donors},
    )


# ============================================
# DISPATCHER
# ============================================
class TokenDispatcher:
    """
    Issue one response token per compatible donor and text them the link.

    Args:
        sender: object with send(phone_number, message); defaults to the
            configured SMS backend
        emit: callable taking a DispatchEvent; defaults to emit_notification
    """

    def __init__(self, sender=None, emit=None):
        self.sender = sender or get_sms_backend()
        self.emit = emit or emit_notification

    def load_registry(self):
        return list(Donor.objects.order_by('id'))

    def dispatch(self, blood_request):
        plan = plan_dispatch(blood_request.blood_group, self.load_registry())
        summary = DispatchSummary(
            blood_group=blood_request.blood_group,
            total_donors=plan.total_donors,
            skipped=len(plan.skipped),
        )
        hospital_name = blood_request.hospital.hospital_name

        logger.info(
            f"Dispatching request #{blood_request.id} ({blood_request.blood_group}): "
            f"{len(plan.recipients)} donors to message, {len(plan.skipped)} without phone"
        )

        for donor in plan.recipients:
            try:
                # Own savepoint so one failed insert cannot poison the batch
                with transaction.atomic():
                    response_token = ResponseToken.objects.issue(blood_request, donor)
                message = compose_message(blood_request, hospital_name, response_link(response_token.token))
                self.sender.send(donor.phone, message)
            except Exception as e:
                summary.sms_failed += 1
                logger.error(f"Failed to send SMS to donor {donor.name} ({donor.phone}): {e}")
                self.emit(sms_failed_event(blood_request, donor))
                continue

            summary.sms_delivered += 1
            logger.info(f"SMS sent successfully to donor: {donor.name} ({donor.phone})")
            self.emit(sms_sent_event(blood_request, donor))

        self.emit(dispatch_complete_event(blood_request, summary))
        logger.info(
            f"Request #{blood_request.id}: {summary.sms_delivered}/{summary.total_donors} SMS delivered"
        )
        return summary
