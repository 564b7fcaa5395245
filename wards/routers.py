"""
URL mappings for the ward management API.

Trailing slashes are deliberately omitted, matching the rest of the API.
"""
from django.urls import include, path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import care_units, health, logos, patients, staff

urlpatterns = [
    # django_prometheus.urls serves /metrics itself
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/token', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/auth/token/refresh', TokenRefreshView.as_view(), name='token_refresh'),
    # Patients
    path('api/patients', patients.patients, name='patients'),
    path('api/patients/care-unit/<str:care_unit_id>', patients.patients_by_care_unit, name='patients_by_care_unit'),
    path('api/patients/<str:pk>', patients.patient_detail, name='patient_detail'),
    path('api/patients/<str:pk>/discharge', patients.patient_discharge, name='patient_discharge'),
    # Care units & beds
    path('api/care-units', care_units.care_units, name='care_units'),
    path('api/care-units/<str:pk>', care_units.care_unit_detail, name='care_unit_detail'),
    path('api/care-units/<str:pk>/beds', care_units.care_unit_beds, name='care_unit_beds'),
    path('api/beds/<str:pk>', care_units.bed_detail, name='bed_detail'),
    # Staff
    path('api/staff', staff.staff, name='staff'),
    path('api/staff/<str:pk>', staff.staff_detail, name='staff_detail'),
    # Hospital logo
    path('api/hospital-logo', logos.logos, name='logos'),
    path('api/hospital-logo/active', logos.delete_active_logo, name='logo_delete_active'),
    path('api/hospital-logo/<str:pk>', logos.logo_detail, name='logo_detail'),
]
