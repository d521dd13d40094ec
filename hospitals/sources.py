# hospitals/sources.py
"""
Read models for donor responses.

Both response stores are exposed through the same ResponseSource interface
and return ResponseRecord objects in one canonical shape, so aggregation
never needs to know where a record came from.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from django.utils import timezone

from algorithms.blood_compatibility import UNKNOWN_BLOOD_GROUP
from algorithms.identity import IdentityMatcher, donor_key
from donors.models import Donor, DonorLocationResponse, LegacyLocation

logger = logging.getLogger(__name__)

TOKEN_RESPONSE = 'token_response'
LEGACY_LOCATION = 'legacy_location'


@dataclass
class ResponseRecord:
    record_id: str
    source: str
    donor_key: str
    donor_id: Optional[int]
    request_id: Optional[int]
    name: str
    phone: str
    blood_group: str
    latitude: Optional[float]
    longitude: Optional[float]
    address: str
    is_available: bool
    response_time: datetime
    roll_number: str = ''
    matched_by: Optional[str] = None

    # Filled in by aggregation
    distance_km: Optional[float] = None
    proximity: Optional[str] = None
    time_since_request: Optional[int] = None
    is_valid: Optional[bool] = None
    is_compatible: Optional[bool] = None

    @property
    def status(self):
        return 'responded' if self.is_available else 'unavailable'

    @property
    def location(self):
        if self.latitude is None or self.longitude is None:
            return None
        return {'lat': self.latitude, 'lng': self.longitude}


class ResponseSource(ABC):
    name = None

    @abstractmethod
    def find(self, blood_request=None, since=None):
        """
        Records for a request (all requests when None) whose response time
        is at or after `since` (no bound when None).
        """


class TokenResponseSource(ResponseSource):
    """Responses submitted through a response token"""
    name = TOKEN_RESPONSE

    def find(self, blood_request=None, since=None):
        queryset = DonorLocationResponse.objects.select_related('donor')
        if blood_request is not None:
            queryset = queryset.filter(blood_request=blood_request)
        if since is not None:
            queryset = queryset.filter(response_time__gte=since)
        return [self.to_record(response) for response in queryset.order_by('-response_time', 'id')]

    def to_record(self, response):
        donor = response.donor
        return ResponseRecord(
            record_id=f"{self.name}:{response.id}",
            source=self.name,
            donor_key=donor_key(donor.id),
            donor_id=donor.id,
            request_id=response.blood_request_id,
            name=donor.name or 'Unknown User',
            phone=donor.phone or 'No phone',
            roll_number=donor.roll_no,
            blood_group=donor.blood_group or UNKNOWN_BLOOD_GROUP,
            latitude=response.latitude,
            longitude=response.longitude,
            address=response.address,
            is_available=response.is_available,
            response_time=response.response_time,
        )


class LegacyLocationSource(ResponseSource):
    """
    Rows from the older `locations` collection. They carry no request or
    donor key, so a request only narrows them by time and the donor is
    recovered with IdentityMatcher.
    """
    name = LEGACY_LOCATION

    def __init__(self, donors=None):
        self._donors = donors

    def find(self, blood_request=None, since=None):
        donors = self._donors if self._donors is not None else Donor.objects.order_by('id')
        matcher = IdentityMatcher(donors)
        now = timezone.now()

        records = []
        for location in LegacyLocation.objects.find_all(time_bound=since):
            match = matcher.match_record(location)
            if match.matched:
                logger.debug(f"Matched {location.user_name!r} with donor #{match.donor.id} by {match.matched_by}")
            records.append(ResponseRecord(
                record_id=f"{self.name}:{location.id}",
                source=self.name,
                donor_key=match.key_for(location.id),
                donor_id=match.donor.id if match.matched else None,
                request_id=blood_request.id if blood_request is not None else None,
                name=location.user_name or 'Unknown User',
                phone=location.mobile_number or 'No phone',
                roll_number=location.roll_number,
                blood_group=match.blood_group,
                latitude=location.latitude,
                longitude=location.longitude,
                address=location.address,
                is_available=True,
                response_time=location.timestamp or now,
                matched_by=match.matched_by,
            ))
        return records


def default_sources(donors=None):
    return [TokenResponseSource(), LegacyLocationSource(donors=donors)]
