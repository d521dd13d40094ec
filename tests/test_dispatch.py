import pytest

from donors.models import ResponseToken
from hospitals.dispatch import TokenDispatcher, compose_message, plan_dispatch, response_link
from hospitals.models import DispatchNotification
from hospitals.notifications import DispatchEvent, emit_notification, notification_emitted
from raktmap.exceptions import DeliveryFailure

pytestmark = pytest.mark.django_db


class FlakySender:
    """Fails for the given phone numbers, records everything else"""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent = []

    def send(self, phone_number, message):
        if phone_number in self.failing:
            raise DeliveryFailure(phone_number, 'carrier rejected')
        self.sent.append((phone_number, message))


def test_plan_keeps_compatible_donors_in_registry_order(make_donor):
    donors = [
        make_donor('Asha', 'B-', phone='1'),
        make_donor('Bala', 'O-', phone='2'),
        make_donor('Chirag', 'A+', phone='3'),
        make_donor('Dev', '', phone='4'),
        make_donor('Esha', 'O-'),
    ]
    plan = plan_dispatch('B-', donors)

    assert [d.name for d in plan.recipients] == ['Asha', 'Bala']
    assert [d.name for d in plan.skipped] == ['Esha']
    assert plan.total_donors == 3


def test_message_carries_the_token_link(settings, make_request):
    settings.RESPONSE_LINK_BASE_URL = 'https://example.org'
    blood_request = make_request('B-', quantity=3)

    message = compose_message(blood_request, 'Civil Hospital', response_link('abc12345'))

    assert message == (
        'Urgent: 3 units B- needed at Civil Hospital. '
        'Respond: https://example.org/r/abc12345'
    )


def test_b_negative_request_reaches_two_of_three_donors(make_donor, make_request, sms_outbox):
    make_donor('Asha', 'B-', phone='9000000001')
    make_donor('Bala', 'O-', phone='9000000002')
    make_donor('Chirag', 'A+', phone='9000000003')
    blood_request = make_request('B-')

    summary = TokenDispatcher().dispatch(blood_request)

    assert summary.as_sms_status() == {
        'totalDonors': 2,
        'smsDelivered': 2,
        'smsFailed': 0,
        'skipped': 0,
        'bloodGroup': 'B-',
    }
    assert [phone for phone, _ in sms_outbox] == ['9000000001', '9000000002']

    tokens = ResponseToken.objects.filter(blood_request=blood_request)
    assert tokens.count() == 2
    for response_token in tokens:
        assert any(response_token.token in message for _, message in sms_outbox)


def test_one_failure_does_not_stop_the_batch(make_donor, make_request):
    make_donor('Asha', 'O-', phone='1')
    make_donor('Bala', 'O-', phone='2')
    make_donor('Chirag', 'O-', phone='3')
    sender = FlakySender(failing={'2'})
    events = []

    summary = TokenDispatcher(sender=sender, emit=events.append).dispatch(make_request('O-'))

    assert summary.sms_delivered == 2
    assert summary.sms_failed == 1
    assert [phone for phone, _ in sender.sent] == ['1', '3']
    assert [e.title for e in events] == ['SMS Sent', 'SMS Failed', 'SMS Sent', 'SMS Dispatch Complete']
    assert events[-1].extra == {'delivered': 2, 'total': 3}


def test_token_is_kept_when_the_sms_fails(make_donor, make_request):
    donor = make_donor('Asha', 'O-', phone='1')
    blood_request = make_request('O-')

    TokenDispatcher(sender=FlakySender(failing={'1'}), emit=lambda e: None).dispatch(blood_request)

    assert ResponseToken.objects.filter(blood_request=blood_request, donor=donor).exists()


def test_phoneless_donors_are_counted_but_skipped(make_donor, make_request, sms_outbox):
    make_donor('Asha', 'O-', phone='1')
    make_donor('Bala', 'O-')

    summary = TokenDispatcher().dispatch(make_request('O-'))

    assert summary.total_donors == 2
    assert summary.sms_delivered == 1
    assert summary.skipped == 1
    assert len(sms_outbox) == 1


def test_no_compatible_donors(make_donor, make_request, sms_outbox):
    make_donor('Asha', 'AB+', phone='1')

    summary = TokenDispatcher().dispatch(make_request('O-'))

    assert summary.total_donors == 0
    assert sms_outbox == []


def test_dispatch_events_are_stored_for_the_hospital(make_donor, make_request, hospital):
    donor = make_donor('Asha', 'O-', phone='1')
    blood_request = make_request('O-')

    TokenDispatcher().dispatch(blood_request)

    titles = list(
        DispatchNotification.objects.filter(hospital=hospital).order_by('id').values_list('title', flat=True)
    )
    assert titles == ['Blood Request Created', 'SMS Sent', 'SMS Dispatch Complete']

    sent = DispatchNotification.objects.get(title='SMS Sent')
    assert sent.donor == donor
    assert sent.meta == {'bloodRequestId': blood_request.id, 'donorId': donor.id}


def test_broken_receiver_does_not_break_emission(hospital):
    def broken(sender, notification, **kwargs):
        raise RuntimeError('socket closed')

    notification_emitted.connect(broken)
    try:
        notification = emit_notification(DispatchEvent(
            type='info', title='Test', message='hello', hospital_id=hospital.id,
        ))
    finally:
        notification_emitted.disconnect(broken)

    assert notification.pk is not None
