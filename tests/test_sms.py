from types import SimpleNamespace

import pytest
from requests.exceptions import ConnectionError as RequestsConnectionError
from twilio.base.exceptions import TwilioRestException

from donors import sms
from donors.sms import ConsoleSMSBackend, LocMemSMSBackend, TwilioSMSBackend, get_sms_backend
from raktmap.exceptions import DeliveryFailure


def twilio_backend(create):
    backend = TwilioSMSBackend(account_sid='AC00000000000000000000000000000000', auth_token='secret',
                               from_number='+15005550006')
    backend.client = SimpleNamespace(messages=SimpleNamespace(create=create))
    return backend


def test_configured_backend_is_used(settings):
    settings.SMS_BACKEND = 'donors.sms.LocMemSMSBackend'
    assert isinstance(get_sms_backend(), LocMemSMSBackend)
    assert isinstance(get_sms_backend('donors.sms.ConsoleSMSBackend'), ConsoleSMSBackend)


def test_locmem_backend_keeps_messages(sms_outbox):
    LocMemSMSBackend().send('9000000001', 'hello')
    assert sms_outbox == [('9000000001', 'hello')]
    assert sms.outbox is sms_outbox


def test_missing_phone_is_a_delivery_failure():
    with pytest.raises(DeliveryFailure) as excinfo:
        LocMemSMSBackend().send('', 'hello')
    assert excinfo.value.phone == ''


def test_twilio_backend_sends_from_the_configured_number():
    calls = []
    backend = twilio_backend(lambda **kwargs: calls.append(kwargs))

    backend.send('+919000000001', 'hello')

    assert calls == [{'body': 'hello', 'from_': '+15005550006', 'to': '+919000000001'}]


def test_twilio_api_error_is_a_delivery_failure():
    def reject(**kwargs):
        raise TwilioRestException(400, 'https://api.twilio.com', msg='Invalid To number')

    with pytest.raises(DeliveryFailure) as excinfo:
        twilio_backend(reject).send('+919000000001', 'hello')
    assert excinfo.value.phone == '+919000000001'
    assert isinstance(excinfo.value.__cause__, TwilioRestException)


def test_twilio_transport_error_is_a_delivery_failure():
    def unreachable(**kwargs):
        raise RequestsConnectionError("Failed to resolve 'api.twilio.com'")

    with pytest.raises(DeliveryFailure) as excinfo:
        twilio_backend(unreachable).send('+919000000001', 'hello')
    assert 'api.twilio.com' in excinfo.value.reason
    assert isinstance(excinfo.value.__cause__, RequestsConnectionError)
