# hospitals/aggregation.py
"""
Consolidated views over donor responses.

ResponseAggregator merges every ResponseSource for one blood request,
measures each responder against the hospital, and splits the result into
responses that arrived after the request (valid) and older ones (invalid).
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.utils import timezone

from algorithms.blood_compatibility import is_compatible
from algorithms.haversine import classify_proximity, haversine_distances, rank_by_distance, reference_point_for
from algorithms.identity import donor_key
from donors.models import Donor
from hospitals.models import BloodRequest
from hospitals.sources import TOKEN_RESPONSE, LEGACY_LOCATION, default_sources
from raktmap.exceptions import RequestNotFound

logger = logging.getLogger(__name__)

ALL = 'all'
AFTER_REQUEST = 'after-request'
RECENT = 'recent'
TIME_FILTERS = (ALL, AFTER_REQUEST, RECENT)


def response_time_bound(blood_request, time_filter, max_age_hours=None, now=None):
    """
    Earliest response time a filter admits, or None for no bound.
    """
    if time_filter == ALL:
        return None
    if time_filter == AFTER_REQUEST:
        return blood_request.created_at
    if time_filter == RECENT:
        hours = max_age_hours or settings.DEFAULT_MAX_AGE_HOURS
        now = now or timezone.now()
        return max(blood_request.created_at, now - timedelta(hours=hours))
    raise ValueError(f"Unknown time filter: {time_filter!r}")


def annotate_distances(records, reference_point):
    ref_lat, ref_lng = reference_point
    distances = haversine_distances(
        ref_lat, ref_lng,
        [r.latitude for r in records],
        [r.longitude for r in records],
    )
    for record, distance in zip(records, distances):
        record.distance_km = None if math.isnan(distance) else round(float(distance), 2)
        record.proximity = classify_proximity(record.distance_km)


def minutes_between(start, end):
    # Floored, so anything before the request reads as negative
    return math.floor((end - start).total_seconds() / 60)


def most_recent_first(records):
    return sorted(records, key=lambda r: r.response_time, reverse=True)


def count_by_source(records):
    return {
        'tokenResponses': sum(1 for r in records if r.source == TOKEN_RESPONSE),
        'legacyResponses': sum(1 for r in records if r.source == LEGACY_LOCATION),
    }


@dataclass
class AggregatedResponses:
    blood_request: BloodRequest
    reference_point: tuple
    time_filter: str
    max_age_hours: Optional[int]
    since: Optional[object]
    compatible_only: bool
    responses: list = field(default_factory=list)
    valid: list = field(default_factory=list)
    invalid: list = field(default_factory=list)

    @property
    def request_info(self):
        return {
            'requestId': self.blood_request.id,
            'createdAt': self.blood_request.created_at,
            'bloodGroup': self.blood_request.blood_group,
            'status': self.blood_request.status,
            'hospital': self.blood_request.hospital.hospital_name,
            'referencePoint': {'lat': self.reference_point[0], 'lng': self.reference_point[1]},
        }

    @property
    def filter_info(self):
        return {
            'timeFilter': self.time_filter,
            'maxAgeHours': self.max_age_hours,
            'compatibleOnly': self.compatible_only,
            'filterApplied': self.since is not None,
            'since': self.since,
        }

    @property
    def summary(self):
        return {
            'total': len(self.responses),
            'valid': len(self.valid),
            'excluded': len(self.invalid),
            **count_by_source(self.responses),
        }


class ResponseAggregator:
    def __init__(self, sources=None):
        self.sources = sources if sources is not None else default_sources()

    def load_request(self, request_id):
        try:
            return BloodRequest.objects.select_related('hospital').get(pk=request_id)
        except (BloodRequest.DoesNotExist, ValueError, TypeError):
            raise RequestNotFound()

    def aggregate(self, request_id, time_filter=ALL, max_age_hours=None, compatible_only=False, now=None):
        blood_request = self.load_request(request_id)
        created_at = blood_request.created_at
        since = response_time_bound(blood_request, time_filter, max_age_hours, now=now)

        records = []
        for source in self.sources:
            found = source.find(blood_request=blood_request, since=since)
            logger.info(f"Request #{blood_request.id}: {len(found)} {source.name} records")
            records.extend(found)

        reference_point = reference_point_for(blood_request.hospital)
        annotate_distances(records, reference_point)

        for record in records:
            record.time_since_request = minutes_between(created_at, record.response_time)
            record.is_valid = record.response_time >= created_at
            record.is_compatible = is_compatible(blood_request.blood_group, record.blood_group)

        if compatible_only:
            records = [r for r in records if r.is_compatible]

        records = most_recent_first(records)
        valid = [r for r in records if r.is_valid]
        invalid = [r for r in records if not r.is_valid]

        logger.info(
            f"Request #{blood_request.id} ({time_filter}): "
            f"{len(valid)} valid, {len(invalid)} before the request"
        )

        return AggregatedResponses(
            blood_request=blood_request,
            reference_point=reference_point,
            time_filter=time_filter,
            max_age_hours=max_age_hours,
            since=since,
            compatible_only=compatible_only,
            # The explicit "all" view keeps pre-request records, flagged invalid
            responses=records if time_filter == ALL else valid,
            valid=valid,
            invalid=invalid,
        )


# ============================================
# REQUEST-INDEPENDENT VIEWS
# ============================================
def collect_locations(reference_point=None, sources=None):
    """
    Every known location from both stores, newest first. Not time-filtered.

    Returns:
        (records, summary)
    """
    reference_point = reference_point or reference_point_for(None)
    sources = sources if sources is not None else default_sources()

    records = []
    for source in sources:
        records.extend(source.find())

    annotate_distances(records, reference_point)
    records = most_recent_first(records)

    summary = {'total': len(records), **count_by_source(records)}
    logger.info(f"Collected {summary['total']} locations ({summary})")
    return records, summary


@dataclass
class DonorAvailability:
    donor: Donor
    record: Optional[object] = None

    @property
    def distance_km(self):
        return self.record.distance_km if self.record is not None else None

    @property
    def has_location(self):
        return self.distance_km is not None

    @property
    def status(self):
        if self.record is None:
            return 'not_contacted'
        return self.record.status


def donor_availability(reference_point=None):
    """
    One row per registered donor with their latest response from either
    store, nearest located donors first, the rest by name.
    """
    donors = list(Donor.objects.order_by('id'))
    records, _ = collect_locations(reference_point, sources=default_sources(donors=donors))

    latest = {}
    for record in records:  # newest first, so the first hit per donor wins
        latest.setdefault(record.donor_key, record)

    rows = [DonorAvailability(donor, latest.get(donor_key(donor.id))) for donor in donors]
    rows.sort(key=lambda row: row.donor.name.casefold())
    return rank_by_distance(rows, key=lambda row: row.distance_km)
