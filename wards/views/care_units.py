"""
Care unit and bed management views.

Any authenticated user may read; creating, renaming and deleting care
units or beds requires an administrative role.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from wards.permissions import IsAdminOrReadOnly
from wards.serializers.directory import BedSerializer, CareUnitSerializer
from wards.services.directory import Directory


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def care_units(request):
    directory = Directory()
    if request.method == 'GET':
        return Response(directory.list_care_units())
    s = CareUnitSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(directory.create_care_unit(request.user, s.validated_data), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def care_unit_detail(request, pk):
    """Fetch, update or delete a care unit.

    Deleting a care unit also deletes its beds, fluid and medication
    records.  Patients are kept.
    """
    directory = Directory()
    if request.method == 'GET':
        return Response(directory.get_care_unit(pk))
    if request.method == 'DELETE':
        return Response(directory.delete_care_unit(request.user, pk))
    s = CareUnitSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    return Response(directory.update_care_unit(request.user, pk, s.validated_data))


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def care_unit_beds(request, pk):
    directory = Directory()
    if request.method == 'GET':
        return Response(directory.list_beds(pk))
    s = BedSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(directory.create_bed(request.user, pk, s.validated_data), status=status.HTTP_201_CREATED)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def bed_detail(request, pk):
    directory = Directory()
    if request.method == 'DELETE':
        directory.delete_bed(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
    s = BedSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(directory.update_bed(request.user, pk, s.validated_data))
