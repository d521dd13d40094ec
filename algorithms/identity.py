"""
Identity Matching - Link legacy location records to registered donors

Legacy location rows carry only free-text contact details (mobile number,
user name, roll number) and no foreign key, so the donor is found by:
    1. exact phone match, ignoring all whitespace
    2. exact name match, ignoring case and surrounding whitespace
First match wins; donors are scanned in id order so results are repeatable.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from algorithms.blood_compatibility import UNKNOWN_BLOOD_GROUP

logger = logging.getLogger(__name__)


def normalize_phone(value):
    if not value:
        return ''
    return ''.join(str(value).split())


def normalize_name(value):
    if not value:
        return ''
    return str(value).strip().casefold()


def donor_key(donor_id):
    """Key shared by every record that belongs to the same registered donor."""
    return f"donor:{donor_id}"


@dataclass(frozen=True)
class IdentityMatch:
    donor: Optional[object] = None
    matched_by: Optional[str] = None  # 'phone' | 'name' | None

    @property
    def matched(self):
        return self.donor is not None

    @property
    def blood_group(self):
        if self.donor is None or not self.donor.blood_group:
            return UNKNOWN_BLOOD_GROUP
        return self.donor.blood_group

    def key_for(self, record_id):
        """De-duplication key: the donor's key, or one private to the record."""
        if self.donor is not None:
            return donor_key(self.donor.id)
        return f"legacy:{record_id}"


NO_MATCH = IdentityMatch()


class IdentityMatcher:
    """
    Index the donor registry once, then resolve any number of legacy records.
    """

    def __init__(self, donors):
        self._by_phone = {}
        self._by_name = {}

        for donor in sorted(donors, key=lambda d: d.id):
            phone = normalize_phone(donor.phone)
            if phone:
                self._by_phone.setdefault(phone, donor)
            name = normalize_name(donor.name)
            if name:
                self._by_name.setdefault(name, donor)

    def match(self, mobile_number=None, user_name=None):
        phone = normalize_phone(mobile_number)
        if phone and phone in self._by_phone:
            return IdentityMatch(self._by_phone[phone], 'phone')

        name = normalize_name(user_name)
        if name and name in self._by_name:
            return IdentityMatch(self._by_name[name], 'name')

        logger.debug(f"No donor matched legacy record ({mobile_number!r}, {user_name!r})")
        return NO_MATCH

    def match_record(self, record):
        """Resolve a LegacyLocation row (or anything with the same fields)."""
        return self.match(record.mobile_number, record.user_name)
