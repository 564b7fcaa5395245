"""
Hospital logo endpoints.

Reading the logo is public so the login page can show it; uploads and
changes need an authenticated user.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from wards.serializers.directory import LogoUpdateSerializer
from wards.services.logos import LogoLibrary


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticatedOrReadOnly])
@parser_classes([MultiPartParser, FormParser])
def logos(request):
    """Return the active logo URL or upload a new logo (field ``logo``)."""
    library = LogoLibrary()
    if request.method == 'GET':
        return Response(library.get_active_logo())
    upload = request.FILES.get('logo')
    if upload is None:
        return Response({'ok': False, 'error': {'code': 'validation_error', 'message': 'No file uploaded'}},
                        status=status.HTTP_400_BAD_REQUEST)
    return Response(library.create_logo(request.user, upload), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticatedOrReadOnly])
@parser_classes([JSONParser, FormParser])
def logo_detail(request, pk):
    library = LogoLibrary()
    if request.method == 'GET':
        return Response(library.get_logo(pk))
    s = LogoUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(library.update_logo(request.user, pk, s.validated_data['is_active']))


@api_view(['DELETE'])
@permission_classes([IsAuthenticatedOrReadOnly])
def delete_active_logo(request):
    return Response(LogoLibrary().delete_active_logo(request.user))
