# api/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from . import views

router = DefaultRouter()
router.register(r'blood-requests', views.BloodRequestViewSet, basename='blood-request')

app_name = 'api'

urlpatterns = [
    path('', include(router.urls)),

    # Donor response links
    path('r/<str:token>/', views.token_detail, name='token-detail'),
    path('r/<str:token>/respond/', views.token_respond, name='token-respond'),

    # Dashboard
    path('locations/', views.locations, name='locations'),
    path('available-donors/', views.available_donors, name='available-donors'),

    # JWT
    path('token/', TokenObtainPairView.as_view(), name='token-obtain-pair'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
]

# Available endpoints:
# POST /api/blood-requests/                        - Create a request and text compatible donors
# GET  /api/blood-requests/                        - List the caller's requests
# GET  /api/blood-requests/{id}/                   - Get one request
# GET  /api/blood-requests/{id}/responses/         - Donor responses (?timeFilter=&maxAgeHours=&compatibleOnly=)
#
# GET  /api/r/{token}/                             - Details behind a response link
# POST /api/r/{token}/respond/                     - Submit location and availability
#
# GET  /api/locations/                             - All donor locations
# GET  /api/available-donors/                      - Registered donors with their latest response
#
# POST /api/token/, /api/token/refresh/            - JWT pair / refresh
