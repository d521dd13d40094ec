from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from freezegun import freeze_time

from donors.models import DonorLocationResponse, LegacyLocation, ResponseToken
from hospitals.aggregation import (
    AFTER_REQUEST,
    ALL,
    RECENT,
    ResponseAggregator,
    collect_locations,
    donor_availability,
    minutes_between,
    response_time_bound,
)
from raktmap.exceptions import RequestNotFound

pytestmark = pytest.mark.django_db

T0 = datetime(2026, 2, 1, 10, 0, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def scenario(make_donor, make_request):
    """
    Request at T0, a legacy location one second before it and a token
    response ten seconds after it.
    """
    ravi = make_donor('Ravi', 'O-', phone='9876543210')
    jane = make_donor('Jane Doe', 'A+', phone='9123456789')

    with freeze_time(T0):
        blood_request = make_request('B-')

    LegacyLocation.objects.create(
        user_name='jane doe', mobile_number='000', latitude=22.70, longitude=72.90,
        timestamp=T0 - timedelta(seconds=1),
    )
    response_token = ResponseToken.objects.issue(blood_request, ravi)
    DonorLocationResponse.objects.create(
        donor=ravi, blood_request=blood_request, token=response_token.token,
        latitude=22.6020, longitude=72.8330, response_time=T0 + timedelta(seconds=10),
    )
    return blood_request


def test_after_request_returns_only_the_later_response(scenario):
    result = ResponseAggregator().aggregate(scenario.id, time_filter=AFTER_REQUEST)

    assert [r.source for r in result.responses] == ['token_response']
    assert result.summary == {
        'total': 1, 'valid': 1, 'excluded': 0, 'tokenResponses': 1, 'legacyResponses': 0,
    }


def test_all_returns_both_most_recent_first(scenario):
    result = ResponseAggregator().aggregate(scenario.id, time_filter=ALL)

    assert [r.source for r in result.responses] == ['token_response', 'legacy_location']
    assert [r.is_valid for r in result.responses] == [True, False]
    assert result.summary['total'] == 2
    assert result.summary['excluded'] == 1
    assert result.filter_info['filterApplied'] is False


def test_records_are_annotated(scenario):
    token_record, legacy_record = ResponseAggregator().aggregate(scenario.id).responses

    assert token_record.name == 'Ravi'
    assert token_record.donor_key.startswith('donor:')
    assert legacy_record.donor_key.startswith('donor:')
    assert token_record.blood_group == 'O-'
    assert token_record.is_compatible is True
    assert token_record.time_since_request == 0
    assert token_record.proximity == 'near'
    assert token_record.distance_km == pytest.approx(0.08, abs=0.02)

    # Phone does not match anyone, the name does
    assert legacy_record.matched_by == 'name'
    assert legacy_record.blood_group == 'A+'
    assert legacy_record.is_compatible is False
    assert legacy_record.time_since_request == -1


def test_compatible_only_drops_incompatible_groups(scenario):
    result = ResponseAggregator().aggregate(scenario.id, time_filter=ALL, compatible_only=True)
    assert [r.name for r in result.responses] == ['Ravi']


def test_distance_is_measured_from_the_hospital(scenario, hospital):
    hospital.latitude, hospital.longitude = 22.70, 72.90
    hospital.save()

    result = ResponseAggregator().aggregate(scenario.id, time_filter=ALL)
    legacy_record = result.responses[1]

    assert result.request_info['referencePoint'] == {'lat': 22.70, 'lng': 72.90}
    assert legacy_record.distance_km == 0


def test_recent_window(make_donor, make_request):
    donor = make_donor('Ravi', 'O-', phone='1')
    with freeze_time(T0):
        blood_request = make_request('O-')
    for hours in (1, 5):
        DonorLocationResponse.objects.create(
            donor=donor, blood_request=blood_request, token=f'tok{hours}',
            latitude=22.6, longitude=72.8, response_time=T0 + timedelta(hours=hours),
        )

    with freeze_time(T0 + timedelta(hours=6)):
        result = ResponseAggregator().aggregate(blood_request.id, time_filter=RECENT, max_age_hours=2)

    assert [r.response_time for r in result.responses] == [T0 + timedelta(hours=5)]
    assert result.filter_info['since'] == T0 + timedelta(hours=4)


def test_recent_bound_never_precedes_the_request(make_request):
    with freeze_time(T0):
        blood_request = make_request()
    bound = response_time_bound(blood_request, RECENT, max_age_hours=48, now=T0 + timedelta(hours=1))
    assert bound == T0


def test_unknown_time_filter_is_rejected(make_request):
    with pytest.raises(ValueError):
        response_time_bound(make_request(), 'yesterday')


def test_unknown_request():
    with pytest.raises(RequestNotFound):
        ResponseAggregator().aggregate(999999)


def test_legacy_without_timestamp_is_excluded_by_time_filters(make_request):
    with freeze_time(T0):
        blood_request = make_request()
    LegacyLocation.objects.create(user_name='Nobody', latitude=22.6, longitude=72.8)

    with freeze_time(T0 + timedelta(hours=1)):
        after = ResponseAggregator().aggregate(blood_request.id, time_filter=AFTER_REQUEST)
        everything = ResponseAggregator().aggregate(blood_request.id, time_filter=ALL)

    assert after.responses == []
    assert [r.name for r in everything.responses] == ['Nobody']
    assert everything.responses[0].blood_group == 'Unknown'


def test_collect_locations_merges_both_stores(scenario):
    records, summary = collect_locations()

    assert summary == {'total': 2, 'tokenResponses': 1, 'legacyResponses': 1}
    assert records[0].response_time > records[1].response_time


def test_donor_availability_joins_latest_response(scenario, make_donor):
    make_donor('Zara', 'AB+', phone='5')

    rows = donor_availability()

    assert [(row.donor.name, row.status) for row in rows] == [
        ('Ravi', 'responded'),
        ('Jane Doe', 'responded'),
        ('Zara', 'not_contacted'),
    ]
    assert rows[0].distance_km < rows[1].distance_km
    assert rows[1].record.matched_by == 'name'
    assert not rows[2].has_location


def test_seconds_before_the_request_read_as_negative_minutes(make_donor, make_request):
    with freeze_time(T0):
        blood_request = make_request()
    LegacyLocation.objects.create(
        user_name='Early', latitude=22.6, longitude=72.8, timestamp=T0 - timedelta(seconds=29),
    )

    record, = ResponseAggregator().aggregate(blood_request.id, time_filter=ALL).responses

    assert record.is_valid is False
    assert record.time_since_request == -1


def test_minutes_between_floors():
    assert minutes_between(T0, T0 + timedelta(seconds=59)) == 0
    assert minutes_between(T0, T0 + timedelta(minutes=2, seconds=40)) == 2
    assert minutes_between(T0, T0 - timedelta(seconds=1)) == -1
