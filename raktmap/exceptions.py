# raktmap/exceptions.py
"""
Domain errors shared by the donors, hospitals and api apps.
"""
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound


class TokenNotFound(NotFound):
    """Missing, already used or expired response token.

    The three cases share one message so a donor link never reveals which
    of them applied.
    """
    default_detail = 'Invalid or expired response link'
    default_code = 'token_not_found'


class RequestNotFound(NotFound):
    default_detail = 'Blood request not found'
    default_code = 'request_not_found'


class StoreUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Storage is temporarily unavailable, please retry'
    default_code = 'store_unavailable'


class DeliveryFailure(Exception):
    """An outbound SMS could not be handed to the transport."""

    def __init__(self, phone, reason):
        self.phone = phone
        self.reason = reason
        super().__init__(f"SMS to {phone} failed: {reason}")


class UnknownBloodGroup(ValueError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown blood group: {value!r}")
