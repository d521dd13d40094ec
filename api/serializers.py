# api/serializers.py
"""
Serializers for the RaktMap API. Field names are camelCase to match the
dashboard and the donor response page.
"""
from rest_framework import serializers

from algorithms.blood_compatibility import canonical_blood_group, get_compatible_recipients
from donors.models import Donor, ResponseToken, DonorLocationResponse
from hospitals.aggregation import TIME_FILTERS, ALL
from hospitals.models import BloodRequest
from raktmap.exceptions import UnknownBloodGroup


class BloodRequestSerializer(serializers.ModelSerializer):
    """
    Serializer for BloodRequest with hospital details
    """
    hospitalName = serializers.CharField(source='hospital.hospital_name', read_only=True)
    bloodGroup = serializers.CharField(source='blood_group')
    patientAge = serializers.IntegerField(source='patient_age', min_value=0, required=False, allow_null=True)
    patientCondition = serializers.CharField(source='patient_condition', required=False, allow_blank=True)
    requiredBy = serializers.DateTimeField(source='required_by', required=False, allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    quantity = serializers.IntegerField(min_value=1)

    class Meta:
        model = BloodRequest
        fields = [
            'id',
            'hospital',
            'hospitalName',
            'bloodGroup',
            'quantity',
            'urgency',
            'description',
            'patientAge',
            'patientCondition',
            'status',
            'requiredBy',
            'createdAt',
        ]
        read_only_fields = ['hospital', 'status']

    def validate_bloodGroup(self, value):
        try:
            return canonical_blood_group(value)
        except UnknownBloodGroup:
            raise serializers.ValidationError(f"'{value}' is not a valid blood group")


class DonorSerializer(serializers.ModelSerializer):
    bloodGroup = serializers.CharField(source='blood_group', read_only=True)
    canDonateTo = serializers.SerializerMethodField()

    class Meta:
        model = Donor
        fields = ['id', 'name', 'bloodGroup', 'canDonateTo']

    def get_canDonateTo(self, obj):
        return get_compatible_recipients(obj.blood_group)


class PublicBloodRequestSerializer(serializers.ModelSerializer):
    """What a donor sees when opening a response link"""
    hospitalName = serializers.CharField(source='hospital.hospital_name', read_only=True)
    hospitalAddress = serializers.CharField(source='hospital.address', read_only=True)
    bloodGroup = serializers.CharField(source='blood_group', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = BloodRequest
        fields = ['id', 'hospitalName', 'hospitalAddress', 'bloodGroup', 'quantity', 'urgency', 'createdAt']


class ResponseTokenSerializer(serializers.ModelSerializer):
    request = PublicBloodRequestSerializer(source='blood_request', read_only=True)
    donor = DonorSerializer(read_only=True)

    class Meta:
        model = ResponseToken
        fields = ['token', 'request', 'donor']


class TokenSubmissionSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    isAvailable = serializers.BooleanField(required=False, allow_null=True, default=None)
    address = serializers.CharField(required=False, allow_blank=True, default='')


class LocationResponseSerializer(serializers.ModelSerializer):
    donorId = serializers.IntegerField(source='donor_id', read_only=True)
    requestId = serializers.IntegerField(source='blood_request_id', read_only=True)
    isAvailable = serializers.BooleanField(source='is_available', read_only=True)
    responseTime = serializers.DateTimeField(source='response_time', read_only=True)

    class Meta:
        model = DonorLocationResponse
        fields = ['id', 'donorId', 'requestId', 'latitude', 'longitude', 'isAvailable', 'address', 'responseTime']


class ResponseFilterSerializer(serializers.Serializer):
    """Query parameters of the per-request responses view"""
    timeFilter = serializers.ChoiceField(choices=TIME_FILTERS, default=ALL)
    maxAgeHours = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)
    compatibleOnly = serializers.BooleanField(default=False)


class ResponseRecordSerializer(serializers.Serializer):
    """Read-only view of hospitals.sources.ResponseRecord"""
    id = serializers.CharField(source='record_id')
    source = serializers.CharField()
    requestId = serializers.IntegerField(source='request_id')
    donorId = serializers.IntegerField(source='donor_id')
    donorKey = serializers.CharField(source='donor_key')
    name = serializers.CharField()
    phone = serializers.CharField()
    rollNumber = serializers.CharField(source='roll_number')
    bloodGroup = serializers.CharField(source='blood_group')
    latitude = serializers.FloatField()
    longitude = serializers.FloatField()
    address = serializers.CharField()
    isAvailable = serializers.BooleanField(source='is_available')
    status = serializers.CharField()
    responseTime = serializers.DateTimeField(source='response_time')
    matchedBy = serializers.CharField(source='matched_by')
    distanceKm = serializers.FloatField(source='distance_km')
    proximity = serializers.CharField()
    timeSinceRequest = serializers.IntegerField(source='time_since_request')
    isValid = serializers.BooleanField(source='is_valid')
    isCompatible = serializers.BooleanField(source='is_compatible')


class DonorAvailabilitySerializer(serializers.Serializer):
    donorId = serializers.IntegerField(source='donor.id')
    name = serializers.CharField(source='donor.name')
    phone = serializers.CharField(source='donor.phone')
    bloodGroup = serializers.CharField(source='donor.blood_group')
    status = serializers.CharField()
    hasLocation = serializers.BooleanField(source='has_location')
    distanceKm = serializers.FloatField(source='distance_km')
    latestResponse = ResponseRecordSerializer(source='record')
