from datetime import timedelta

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from django.utils.crypto import get_random_string

from algorithms.blood_compatibility import normalize_blood_group

TOKEN_ALPHABET = 'abcdefghijklmnopqrstuvwxyz0123456789'
TOKEN_ISSUE_ATTEMPTS = 5


# ---------------------------
# Donor registry
# ---------------------------
class Donor(models.Model):
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20, blank=True, db_index=True)
    blood_group = models.CharField(max_length=8, blank=True, db_index=True)
    roll_no = models.CharField(max_length=50, blank=True)
    email = models.EmailField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    def save(self, *args, **kwargs):
        # Registry boundary: everything downstream sees the canonical shape
        self.blood_group = normalize_blood_group(self.blood_group)
        self.name = (self.name or '').strip()
        self.phone = (self.phone or '').strip()
        self.roll_no = (self.roll_no or '').strip()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.blood_group or '?'})"

    class Meta:
        ordering = ['id']


# ---------------------------
# Response tokens
# ---------------------------
def generate_token():
    return get_random_string(settings.RESPONSE_TOKEN_LENGTH, allowed_chars=TOKEN_ALPHABET)


class ResponseTokenQuerySet(models.QuerySet):
    def active(self, now=None):
        """Unused tokens still inside their time-to-live."""
        queryset = self.filter(is_used=False)
        ttl_hours = settings.RESPONSE_TOKEN_TTL_HOURS
        if ttl_hours:
            now = now or timezone.now()
            queryset = queryset.filter(created_at__gte=now - timedelta(hours=ttl_hours))
        return queryset

    def expired(self, now=None):
        ttl_hours = settings.RESPONSE_TOKEN_TTL_HOURS
        if not ttl_hours:
            return self.none()
        now = now or timezone.now()
        return self.filter(is_used=False, created_at__lt=now - timedelta(hours=ttl_hours))

    def issue(self, blood_request, donor):
        """
        Create the one token for a (request, donor) pair.
        Retries on the unlikely event of a token value collision.
        """
        for _ in range(TOKEN_ISSUE_ATTEMPTS):
            value = generate_token()
            if not self.filter(token=value).exists():
                return self.create(token=value, blood_request=blood_request, donor=donor)
        raise RuntimeError(f"Could not issue a unique response token after {TOKEN_ISSUE_ATTEMPTS} attempts")

    def claim(self, token, now=None):
        """
        Mark a token used if, and only if, it is currently active.
        A single conditional UPDATE, so two racing submissions cannot both win.

        Returns:
            True if this call consumed the token
        """
        now = now or timezone.now()
        return self.active(now).filter(token=token).update(is_used=True, used_at=now) == 1


class ResponseToken(models.Model):
    token = models.CharField(max_length=32, unique=True)
    blood_request = models.ForeignKey(
        'hospitals.BloodRequest',
        on_delete=models.CASCADE,
        related_name='response_tokens'
    )
    donor = models.ForeignKey(
        Donor,
        on_delete=models.CASCADE,
        related_name='response_tokens'
    )

    is_used = models.BooleanField(default=False)
    used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ResponseTokenQuerySet.as_manager()

    def __str__(self):
        return f"{self.token} → {self.donor.name} | Request #{self.blood_request_id}"

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['blood_request', 'donor'], name='one_token_per_request_donor'),
        ]


# ---------------------------
# Structured (token-based) responses
# ---------------------------
class DonorLocationResponse(models.Model):
    donor = models.ForeignKey(
        Donor,
        on_delete=models.CASCADE,
        related_name='location_responses'
    )
    blood_request = models.ForeignKey(
        'hospitals.BloodRequest',
        on_delete=models.CASCADE,
        related_name='location_responses'
    )
    token = models.CharField(max_length=32)

    latitude = models.FloatField(validators=[MinValueValidator(-90), MaxValueValidator(90)])
    longitude = models.FloatField(validators=[MinValueValidator(-180), MaxValueValidator(180)])
    is_available = models.BooleanField(default=True)
    address = models.TextField(blank=True)

    response_time = models.DateTimeField(default=timezone.now, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.donor.name} @ ({self.latitude}, {self.longitude})"

    class Meta:
        ordering = ['-response_time']


# ---------------------------
# Legacy location collection
# ---------------------------
class LegacyLocationQuerySet(models.QuerySet):
    def find_all(self, time_bound=None):
        """
        Every legacy record, optionally only those stamped at or after
        time_bound. Records without a timestamp never pass a bound.
        """
        queryset = self.all()
        if time_bound is not None:
            queryset = queryset.filter(timestamp__gte=time_bound)
        return list(queryset.order_by('-timestamp', 'id'))


class LegacyLocation(models.Model):
    """Location shared through the older tracker page; no link to a donor."""
    address = models.TextField(blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    user_name = models.CharField(max_length=200, blank=True)
    roll_number = models.CharField(max_length=50, blank=True)
    mobile_number = models.CharField(max_length=20, blank=True)
    timestamp = models.DateTimeField(null=True, blank=True)

    objects = LegacyLocationQuerySet.as_manager()

    def __str__(self):
        return f"{self.user_name or 'Unknown User'} | {self.timestamp}"

    class Meta:
        db_table = 'locations'
