"""
Blood Group Compatibility Helper
Determines which donor blood groups can satisfy a request for a given group
"""
import logging

from raktmap.exceptions import UnknownBloodGroup

logger = logging.getLogger(__name__)

UNKNOWN_BLOOD_GROUP = 'Unknown'

BLOOD_GROUPS = ['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-']

# Red-cell compatibility matrix, keyed by the REQUESTED (recipient) group.
# Every other view of compatibility is derived from this table.
DONORS_FOR_RECIPIENT = {
    'O-': ['O-'],
    'O+': ['O+', 'O-'],
    'A-': ['A-', 'O-'],
    'A+': ['A+', 'A-', 'O+', 'O-'],
    'B-': ['B-', 'O-'],
    'B+': ['B+', 'B-', 'O+', 'O-'],
    'AB-': ['AB-', 'A-', 'B-', 'O-'],
    'AB+': ['AB+', 'AB-', 'A+', 'A-', 'B+', 'B-', 'O+', 'O-'],  # Universal recipient
}


def normalize_blood_group(value):
    """Strip all whitespace and upper-case, e.g. ' b - ' -> 'B-'."""
    if value is None:
        return ''
    return ''.join(str(value).split()).upper()


def canonical_blood_group(value):
    """
    Normalize and validate a blood group string.

    Raises:
        UnknownBloodGroup: if the normalized value is not one of the eight groups
    """
    group = normalize_blood_group(value)
    if group not in DONORS_FOR_RECIPIENT:
        raise UnknownBloodGroup(value)
    return group


def is_compatible(requested_blood_group, donor_blood_group):
    """
    Check if a donor can satisfy a request

    Args:
        requested_blood_group: Group the hospital asked for (e.g., 'B-')
        donor_blood_group: Candidate donor's group (e.g., 'O-')

    Returns:
        Boolean: True if compatible. Unknown or malformed groups on either
        side are never compatible.
    """
    try:
        requested = canonical_blood_group(requested_blood_group)
        donor = canonical_blood_group(donor_blood_group)
    except UnknownBloodGroup as e:
        logger.debug(f"Treating as incompatible: {e}")
        return False

    return donor in DONORS_FOR_RECIPIENT[requested]


def get_compatible_donors(recipient_blood_group):
    """
    Get list of blood groups that can donate to recipient

    Args:
        recipient_blood_group: Requested blood group

    Returns:
        List of compatible donor blood groups (empty for unknown groups)
    """
    return list(DONORS_FOR_RECIPIENT.get(normalize_blood_group(recipient_blood_group), []))


def get_compatible_recipients(donor_blood_group):
    """
    Get list of blood groups that can receive from donor

    Args:
        donor_blood_group: Donor's blood group

    Returns:
        List of compatible recipient blood groups
    """
    donor = normalize_blood_group(donor_blood_group)
    return [
        recipient for recipient, donors in DONORS_FOR_RECIPIENT.items()
        if donor in donors
    ]
