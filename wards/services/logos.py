"""
Hospital logo storage.

Uploaded images are written to the default file storage under
``logos/``; at most one logo record is active at a time.
"""
import logging
import os
import uuid
from typing import Optional

from django.conf import settings
from django.core.files.storage import default_storage

from wards.exceptions import NotFound, PayloadTooLarge, UnsupportedMediaType
from wards.gateway import PersistenceGateway, get_gateway
from wards.services.audit import log_action

logger = logging.getLogger(__name__)


class LogoLibrary:
    def __init__(self, gateway: Optional[PersistenceGateway] = None, storage=None):
        self.gateway = gateway or get_gateway()
        self.storage = storage or default_storage

    def _url(self, name: Optional[str]) -> Optional[str]:
        return self.storage.url(name) if name else None

    def get_active_logo(self) -> dict:
        logos = self.gateway.find_many('logos', {'is_active': True}, order_by=['-created_at'])
        logo = logos[0] if logos else None
        return {'logoUrl': self._url(logo['image']) if logo else None}

    def get_logo(self, logo_id) -> dict:
        logo = self.gateway.find_by_id('logos', logo_id)
        if not logo:
            raise NotFound('Logo not found')
        creator = self.gateway.find_by_id('users', logo['created_by']) if logo['created_by'] else None
        return {
            'logoUrl': self._url(logo['image']),
            'name': logo['name'],
            'isActive': logo['is_active'],
            'createdAt': logo['created_at'].isoformat() if logo['created_at'] else None,
            'createdBy': {'id': creator['id'], 'username': creator['username']} if creator else None,
        }

    def create_logo(self, actor, upload) -> dict:
        content_type = getattr(upload, 'content_type', '') or ''
        if content_type not in settings.LOGO_ALLOWED_TYPES:
            raise UnsupportedMediaType('Invalid file type. Please upload a JPEG, PNG, GIF, or WebP image.')
        if (upload.size or 0) > settings.UPLOAD_MAX_MB * 1024 * 1024:
            raise PayloadTooLarge(f'File size too large. Maximum size is {settings.UPLOAD_MAX_MB}MB.')

        ext = os.path.splitext(upload.name or '')[1].lower()
        stored = self.storage.save(f'logos/logo-{uuid.uuid4().hex}{ext}', upload)
        try:
            self.gateway.update_many('logos', {}, {'is_active': False})
            logo = self.gateway.create('logos', {
                'name': upload.name,
                'image': stored,
                'is_active': True,
                'created_by': getattr(actor, 'id', None),
            })
        except Exception:
            logger.exception('saving logo record failed; removing %s', stored)
            self.storage.delete(stored)
            raise

        log_action(user=actor, action='logo_create', object_type='logo', object_id=logo['id'], gateway=self.gateway)
        return {
            'message': 'Logo uploaded successfully',
            'id': logo['id'],
            'logoUrl': self._url(stored),
        }

    def update_logo(self, actor, logo_id, is_active: bool) -> dict:
        if not self.gateway.find_by_id('logos', logo_id):
            raise NotFound('Logo not found')
        if is_active:
            self.gateway.update_many('logos', {}, {'is_active': False}, exclude={'id': logo_id})
        logo = self.gateway.update_by_id('logos', logo_id, {
            'is_active': is_active, 'updated_by': getattr(actor, 'id', None),
        })
        log_action(user=actor, action='logo_update', object_type='logo', object_id=logo_id,
                   detail={'isActive': is_active}, gateway=self.gateway)
        return {
            'message': 'Logo updated successfully',
            'logoUrl': self._url(logo['image']),
            'isActive': logo['is_active'],
        }

    def delete_active_logo(self, actor) -> dict:
        logos = self.gateway.find_many('logos', {'is_active': True}, order_by=['-created_at'])
        if not logos:
            raise NotFound('No active logo found')
        logo = logos[0]
        if logo['image'] and self.storage.exists(logo['image']):
            self.storage.delete(logo['image'])
        self.gateway.delete_by_id('logos', logo['id'])
        log_action(user=actor, action='logo_delete', object_type='logo', object_id=logo['id'], gateway=self.gateway)
        return {'message': 'Logo deleted successfully', 'logoUrl': None}
