"""
Patient endpoints: admission, transfer, discharge and removal.

Access requires an authenticated user; fine grained permission checks
are left to the deployment's role configuration.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from wards.serializers.patient import AdmitPatientSerializer, UpdatePatientSerializer
from wards.services.patients import PatientLifecycle


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patients(request):
    """List active patients (newest first) or admit a new one."""
    lifecycle = PatientLifecycle()
    if request.method == 'GET':
        return Response(lifecycle.list_patients())
    s = AdmitPatientSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(lifecycle.admit_patient(request.user, s.validated_data), status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patients_by_care_unit(request, care_unit_id):
    return Response(PatientLifecycle().list_patients_by_care_unit(care_unit_id))


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def patient_detail(request, pk):
    """Fetch, update (optionally moving beds) or soft-delete a patient.

    Supplying ``careUnit`` and/or ``bed`` moves the patient; a missing
    one of the two defaults to the patient's current value.
    """
    lifecycle = PatientLifecycle()
    if request.method == 'GET':
        return Response(lifecycle.get_patient(pk))
    if request.method == 'DELETE':
        return Response(lifecycle.delete_patient(request.user, pk))
    s = UpdatePatientSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    return Response(lifecycle.update_patient(request.user, pk, s.validated_data))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def patient_discharge(request, pk):
    return Response(PatientLifecycle().discharge_patient(request.user, pk))
