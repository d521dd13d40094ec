# donors/responses.py
"""
Token-based donor responses: a donor opens the link from the SMS, sees the
request, then shares location and availability exactly once.
"""
import logging

from django.db import transaction
from django.utils import timezone

from donors.models import ResponseToken, DonorLocationResponse
from raktmap.exceptions import TokenNotFound

logger = logging.getLogger(__name__)


def resolve_token(token):
    """
    Look up an active token for display. Does not consume it.

    Raises:
        TokenNotFound: unknown, already used or expired token
    """
    try:
        return ResponseToken.objects.active().select_related(
            'donor', 'blood_request', 'blood_request__hospital'
        ).get(token=token)
    except ResponseToken.DoesNotExist:
        raise TokenNotFound()


def submit_response(token, latitude, longitude, is_available=None, address=''):
    """
    Consume a token and record the donor's location response.

    The claim is one conditional UPDATE inside the same transaction as the
    insert: if the insert fails the token stays unused, and of two concurrent
    submissions only one can flip is_used.

    Raises:
        TokenNotFound: unknown, already used or expired token
    """
    now = timezone.now()

    with transaction.atomic():
        if not ResponseToken.objects.claim(token, now=now):
            logger.info(f"Rejected response for unusable token {token}")
            raise TokenNotFound()

        response_token = ResponseToken.objects.select_related('donor').get(token=token)

        response = DonorLocationResponse.objects.create(
            donor_id=response_token.donor_id,
            blood_request_id=response_token.blood_request_id,
            token=token,
            latitude=latitude,
            longitude=longitude,
            is_available=is_available is not False,  # default to available
            address=address or '',
            response_time=now,
        )

    logger.info(
        f"Location response saved for donor {response_token.donor.name} "
        f"(request #{response.blood_request_id}) at {latitude}, {longitude}"
    )
    return response
