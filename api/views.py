# api/views.py
import logging

from django.db import DatabaseError
from django.http import Http404
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, authentication_classes, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from algorithms.haversine import reference_point_for
from donors.responses import resolve_token, submit_response
from hospitals.aggregation import ResponseAggregator, collect_locations, donor_availability
from hospitals.dispatch import DispatchSummary, TokenDispatcher
from hospitals.models import BloodRequest, HospitalProfile
from raktmap.exceptions import RequestNotFound
from .serializers import (
    BloodRequestSerializer,
    DonorAvailabilitySerializer,
    LocationResponseSerializer,
    ResponseFilterSerializer,
    ResponseRecordSerializer,
    ResponseTokenSerializer,
    TokenSubmissionSerializer,
)

logger = logging.getLogger(__name__)


def hospital_for(user):
    """The caller's hospital profile, or None for non-hospital accounts"""
    try:
        return user.hospitalprofile
    except (HospitalProfile.DoesNotExist, AttributeError):
        return None


class BloodRequestViewSet(mixins.CreateModelMixin,
                          mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          viewsets.GenericViewSet):
    """
    Create blood requests (dispatching SMS to compatible donors), list them
    and view the responses they collected.
    """
    serializer_class = BloodRequestSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = BloodRequest.objects.select_related('hospital').order_by('-created_at')
        if not self.request.user.is_staff:
            queryset = queryset.filter(hospital__user=self.request.user)

        status_filter = self.request.query_params.get('status')
        if status_filter and status_filter != 'all':
            queryset = queryset.filter(status=status_filter)
        return queryset

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise RequestNotFound()

    def create(self, request, *args, **kwargs):
        hospital = hospital_for(request.user)
        if hospital is None:
            raise PermissionDenied('Only hospital accounts can create blood requests')

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        blood_request = serializer.save(hospital=hospital)

        try:
            summary = TokenDispatcher().dispatch(blood_request)
        except DatabaseError as e:
            # The request itself is stored; report that nothing was sent
            logger.error(f"SMS dispatch for request #{blood_request.id} aborted: {e}")
            summary = DispatchSummary(blood_group=blood_request.blood_group)

        return Response({
            'success': True,
            'message': (
                f"Blood request created. SMS sent to {summary.sms_delivered} of "
                f"{summary.total_donors} compatible donors"
            ),
            'requestId': blood_request.id,
            'smsStatus': summary.as_sms_status(),
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'])
    def responses(self, request, pk=None):
        """Donor responses for one request, filtered by time"""
        blood_request = self.get_object()

        filters = ResponseFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data

        result = ResponseAggregator().aggregate(
            blood_request.id,
            time_filter=params['timeFilter'],
            max_age_hours=params['maxAgeHours'],
            compatible_only=params['compatibleOnly'],
        )

        return Response({
            'success': True,
            'responses': ResponseRecordSerializer(result.responses, many=True).data,
            'requestInfo': result.request_info,
            'filterInfo': result.filter_info,
            'summary': result.summary,
        })


# ============================================
# DONOR RESPONSE LINKS (public)
# ============================================
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def token_detail(request, token):
    """Request and donor details behind a response link"""
    response_token = resolve_token(token)
    return Response({
        'success': True,
        'data': ResponseTokenSerializer(response_token).data,
    })


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def token_respond(request, token):
    """Share location and availability; each link works once"""
    serializer = TokenSubmissionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    response = submit_response(
        token,
        latitude=data['latitude'],
        longitude=data['longitude'],
        is_available=data['isAvailable'],
        address=data['address'],
    )

    return Response({
        'success': True,
        'message': 'Thank you! Your response has been recorded',
        'data': LocationResponseSerializer(response).data,
    }, status=status.HTTP_201_CREATED)


# ============================================
# DASHBOARD VIEWS
# ============================================
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def locations(request):
    """Every known donor location from both response stores"""
    reference_point = reference_point_for(hospital_for(request.user))
    records, summary = collect_locations(reference_point)
    return Response({
        'success': True,
        'responses': ResponseRecordSerializer(records, many=True).data,
        'summary': summary,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def available_donors(request):
    """Registered donors with their latest response, nearest first"""
    reference_point = reference_point_for(hospital_for(request.user))
    rows = donor_availability(reference_point)
    with_location = sum(1 for row in rows if row.has_location)
    return Response({
        'success': True,
        'donors': DonorAvailabilitySerializer(rows, many=True).data,
        'total': len(rows),
        'withLocation': with_location,
        'withoutLocation': len(rows) - with_location,
    })
