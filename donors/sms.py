# donors/sms.py
"""
Outbound SMS backends.

The active backend is chosen by settings.SMS_BACKEND, the same way Django
picks an email backend. Every backend exposes send(phone_number, message)
and raises DeliveryFailure when the message could not be handed over.
"""
import logging

from django.conf import settings
from django.utils.module_loading import import_string
from requests import RequestException
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from raktmap.exceptions import DeliveryFailure

logger = logging.getLogger(__name__)

# Messages captured by LocMemSMSBackend, as (phone_number, message) tuples
outbox = []


class BaseSMSBackend:
    def send(self, phone_number, message):
        raise NotImplementedError('subclasses of BaseSMSBackend must provide a send() method')


class ConsoleSMSBackend(BaseSMSBackend):
    """Writes the message to the log instead of sending it"""

    def send(self, phone_number, message):
        if not phone_number:
            raise DeliveryFailure(phone_number, 'no phone number')
        logger.info(f"SMS to {phone_number}: {message}")


class LocMemSMSBackend(BaseSMSBackend):
    """Keeps messages in donors.sms.outbox; used by the test-suite"""

    def send(self, phone_number, message):
        if not phone_number:
            raise DeliveryFailure(phone_number, 'no phone number')
        outbox.append((phone_number, message))


class TwilioSMSBackend(BaseSMSBackend):
    def __init__(self, account_sid=None, auth_token=None, from_number=None):
        self.from_number = from_number or settings.TWILIO_FROM_NUMBER
        self.client = Client(
            account_sid or settings.TWILIO_ACCOUNT_SID,
            auth_token or settings.TWILIO_AUTH_TOKEN,
        )

    def send(self, phone_number, message):
        try:
            self.client.messages.create(
                body=message,
                from_=self.from_number,
                to=phone_number,
            )
        except (TwilioException, RequestException) as e:
            raise DeliveryFailure(phone_number, str(e)) from e
        logger.info(f"SMS sent to {phone_number} via Twilio")


def get_sms_backend(backend=None, **kwargs):
    """Instantiate the configured (or given) backend class"""
    return import_string(backend or settings.SMS_BACKEND)(**kwargs)
