import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from donors import sms
from donors.models import Donor
from hospitals.models import BloodRequest, HospitalProfile


@pytest.fixture(autouse=True)
def sms_outbox(settings):
    """Capture SMS in memory instead of hitting a transport."""
    settings.SMS_BACKEND = 'donors.sms.LocMemSMSBackend'
    sms.outbox.clear()
    yield sms.outbox
    sms.outbox.clear()


@pytest.fixture
def hospital_user(db):
    return get_user_model().objects.create_user(username='civil', password='secret-pass')


@pytest.fixture
def hospital(hospital_user):
    return HospitalProfile.objects.create(
        user=hospital_user,
        hospital_name='Civil Hospital',
        address='Anand',
        latitude=22.6013,
        longitude=72.8327,
    )


@pytest.fixture
def make_donor(db):
    def _make(name, blood_group, phone='', **extra):
        return Donor.objects.create(name=name, blood_group=blood_group, phone=phone, **extra)
    return _make


@pytest.fixture
def make_request(hospital):
    def _make(blood_group='B-', quantity=2, **extra):
        return BloodRequest.objects.create(hospital=hospital, blood_group=blood_group, quantity=quantity, **extra)
    return _make


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def hospital_client(api_client, hospital):
    api_client.force_authenticate(user=hospital.user)
    return api_client
