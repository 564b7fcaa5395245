"""
Staff account management.  Administrators only.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from wards.permissions import IsAdminRole
from wards.serializers.directory import StaffCreateSerializer, StaffUpdateSerializer
from wards.services.directory import Directory


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def staff(request):
    """List users holding the staff role, or create one."""
    directory = Directory()
    if request.method == 'GET':
        return Response(directory.list_staff())
    s = StaffCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(directory.create_staff(request.user, s.validated_data), status=status.HTTP_201_CREATED)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def staff_detail(request, pk):
    directory = Directory()
    if request.method == 'DELETE':
        directory.delete_staff(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
    s = StaffUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(directory.update_staff(request.user, pk, s.validated_data))
