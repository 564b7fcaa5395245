"""
Reference data: care units, their beds, and staff accounts.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.contrib.auth.hashers import make_password

from wards.exceptions import ConfigurationError, Conflict, NotFound
from wards.gateway import PersistenceGateway, Record, get_gateway
from wards.services.audit import log_action

logger = logging.getLogger(__name__)

CASCADE_COLLECTIONS = ('beds', 'fluids', 'medications')


def _iso(value):
    return value.isoformat() if value else None


class Directory:
    def __init__(self, gateway: Optional[PersistenceGateway] = None):
        self.gateway = gateway or get_gateway()

    def _usernames(self, ids) -> Dict[Any, Record]:
        ids = [i for i in set(ids) if i]
        if not ids:
            return {}
        return {u['id']: {'id': u['id'], 'username': u['username']}
                for u in self.gateway.find_many('users', {'id__in': ids})}

    # ------------------------------------------------------------------
    # Care units
    # ------------------------------------------------------------------
    def _present_units(self, units: List[Record]) -> List[dict]:
        users = self._usernames([u['created_by'] for u in units] + [u['updated_by'] for u in units])
        return [{
            'id': u['id'],
            'careUnit': u['care_unit'],
            'description': u['description'],
            'createdBy': users.get(u['created_by']),
            'updatedBy': users.get(u['updated_by']),
            'createdAt': _iso(u['created_at']),
            'updatedAt': _iso(u['updated_at']),
        } for u in units]

    def _require_care_unit(self, care_unit_id) -> Record:
        unit = self.gateway.find_by_id('care_units', care_unit_id)
        if not unit:
            raise NotFound('Care unit not found')
        return unit

    def list_care_units(self) -> List[dict]:
        return self._present_units(self.gateway.find_many('care_units', order_by=['-created_at']))

    def get_care_unit(self, care_unit_id) -> dict:
        return self._present_units([self._require_care_unit(care_unit_id)])[0]

    def create_care_unit(self, actor, data: Dict[str, Any]) -> dict:
        unit = self.gateway.create('care_units', {
            'care_unit': data['care_unit'],
            'description': data.get('description') or '',
            'created_by': getattr(actor, 'id', None),
        })
        log_action(user=actor, action='care_unit_create', object_type='care_unit', object_id=unit['id'],
                   gateway=self.gateway)
        return self._present_units([unit])[0]

    def update_care_unit(self, actor, care_unit_id, data: Dict[str, Any]) -> dict:
        fields = {k: v for k, v in data.items() if k in ('care_unit', 'description') and v is not None}
        fields['updated_by'] = getattr(actor, 'id', None)
        unit = self.gateway.update_by_id('care_units', care_unit_id, fields)
        if not unit:
            raise NotFound('Care unit not found')
        log_action(user=actor, action='care_unit_update', object_type='care_unit', object_id=care_unit_id,
                   gateway=self.gateway)
        return self._present_units([unit])[0]

    def delete_care_unit(self, actor, care_unit_id) -> dict:
        """Delete a care unit, then its beds, fluids and medications.

        The dependent deletes run after the care unit is gone and are not
        atomic with it; a failure part-way leaves orphaned records.
        """
        if not self.gateway.delete_by_id('care_units', care_unit_id):
            raise NotFound('Care unit not found')
        deleted = {}
        for collection in CASCADE_COLLECTIONS:
            deleted[collection] = self.gateway.delete_many(collection, {'care_unit': care_unit_id})
        log_action(user=actor, action='care_unit_delete', object_type='care_unit', object_id=care_unit_id,
                   detail=deleted, gateway=self.gateway)
        logger.info('deleted care unit %s with %s', care_unit_id, deleted)
        return {
            'message': 'Care unit and its beds, fluids, medications deleted successfully',
            'deleted': deleted,
        }

    # ------------------------------------------------------------------
    # Beds
    # ------------------------------------------------------------------
    @staticmethod
    def _present_bed(bed: Record) -> dict:
        return {
            'id': bed['id'],
            'bedName': bed['bed_name'],
            'careUnit': bed['care_unit'],
            'occupied': bed['occupied'],
            'isActive': bed['is_active'],
            'createdAt': _iso(bed['created_at']),
            'updatedAt': _iso(bed['updated_at']),
        }

    def _check_bed_name(self, care_unit_id, bed_name, bed_id=None):
        other = self.gateway.find_one(
            'beds', {'care_unit': care_unit_id, 'bed_name__iexact': bed_name, 'is_active': True}
        )
        if other and other['id'] != bed_id:
            raise Conflict('Bed already exists in this care unit')

    def list_beds(self, care_unit_id) -> List[dict]:
        self._require_care_unit(care_unit_id)
        beds = self.gateway.find_many('beds', {'care_unit': care_unit_id, 'is_active': True},
                                      order_by=['bed_name'])
        return [self._present_bed(b) for b in beds]

    def create_bed(self, actor, care_unit_id, data: Dict[str, Any]) -> dict:
        self._require_care_unit(care_unit_id)
        self._check_bed_name(care_unit_id, data['bed_name'])
        bed = self.gateway.create('beds', {
            'bed_name': data['bed_name'],
            'care_unit': care_unit_id,
            'occupied': False,
            'is_active': True,
            'created_by': getattr(actor, 'id', None),
        })
        log_action(user=actor, action='bed_create', object_type='bed', object_id=bed['id'],
                   detail={'careUnit': care_unit_id}, gateway=self.gateway)
        return self._present_bed(bed)

    def update_bed(self, actor, bed_id, data: Dict[str, Any]) -> dict:
        bed = self.gateway.find_by_id('beds', bed_id)
        if not bed:
            raise NotFound('Bed not found')
        self._check_bed_name(bed['care_unit'], data['bed_name'], bed_id)
        bed = self.gateway.update_by_id('beds', bed_id, {
            'bed_name': data['bed_name'], 'updated_by': getattr(actor, 'id', None),
        })
        if not bed:
            raise NotFound('Bed not found')
        log_action(user=actor, action='bed_update', object_type='bed', object_id=bed_id, gateway=self.gateway)
        return self._present_bed(bed)

    def delete_bed(self, actor, bed_id) -> None:
        bed = self.gateway.find_by_id('beds', bed_id)
        if not bed:
            raise NotFound('Bed not found')
        if bed['occupied']:
            raise Conflict('Bed is occupied')
        # conditional so a concurrent admission cannot land on a deleted bed
        if not self.gateway.update_if('beds', bed_id, {'occupied': False},
                                      {'is_active': False, 'updated_by': getattr(actor, 'id', None)}):
            raise Conflict('Bed is occupied')
        self.gateway.delete_by_id('beds', bed_id)
        log_action(user=actor, action='bed_delete', object_type='bed', object_id=bed_id, gateway=self.gateway)

    # ------------------------------------------------------------------
    # Staff
    # ------------------------------------------------------------------
    def staff_role(self) -> Record:
        role = self.gateway.find_one('roles', {'name__iexact': settings.WARDS_STAFF_ROLE})
        if not role:
            raise ConfigurationError(f"Default '{settings.WARDS_STAFF_ROLE}' role not configured")
        return role

    def _present_staff(self, users: List[Record]) -> List[dict]:
        role_ids = list({u['role'] for u in users if u['role']})
        roles = {r['id']: r for r in self.gateway.find_many('roles', {'id__in': role_ids})} if role_ids else {}
        creators = self._usernames([u['created_by'] for u in users])
        data = []
        for u in users:
            role = roles.get(u['role'])
            data.append({
                'id': u['id'],
                'username': u['username'],
                'firstName': u['first_name'],
                'lastName': u['last_name'],
                'email': u['email'],
                'phone': u['phone'],
                'specialization': u['specialization'],
                'isActive': u['is_active'],
                'role': {
                    'id': role['id'],
                    'name': role['name'],
                    'description': role['description'],
                    'permissions': role['permissions'],
                } if role else None,
                'createdBy': creators.get(u['created_by']),
                'createdAt': _iso(u['date_joined']),
            })
        return data

    def _check_unique_user(self, data: Dict[str, Any], user_id=None) -> None:
        checks = (
            ('username', 'Username already exists'),
            ('email', 'Email already in use'),
            ('phone', 'Phone already in use'),
        )
        for field, message in checks:
            value = data.get(field)
            if not value:
                continue
            lookup = f'{field}__iexact' if field != 'phone' else field
            other = self.gateway.find_one('users', {lookup: value})
            if other and other['id'] != user_id:
                raise Conflict(message)

    def list_staff(self) -> List[dict]:
        role = self.staff_role()
        users = self.gateway.find_many('users', {'role': role['id']}, order_by=['-date_joined'])
        return self._present_staff(users)

    def create_staff(self, actor, data: Dict[str, Any]) -> dict:
        self._check_unique_user(data)
        role = self.staff_role()
        user = self.gateway.create('users', {
            'username': data['username'],
            'password': make_password(data['password']),
            'first_name': data.get('first_name') or '',
            'last_name': data.get('last_name') or '',
            'email': data.get('email') or '',
            'phone': data.get('phone') or None,
            'specialization': data.get('specialization') or '',
            'role': role['id'],
            'is_active': True,
            'created_by': getattr(actor, 'id', None),
        })
        log_action(user=actor, action='staff_create', object_type='user', object_id=user['id'],
                   gateway=self.gateway)
        logger.info('created staff user %s', user['username'])
        return self._present_staff([user])[0]

    def update_staff(self, actor, user_id, data: Dict[str, Any]) -> dict:
        if not self.gateway.find_by_id('users', user_id):
            raise NotFound('Staff member not found')
        self._check_unique_user(data, user_id)
        fields = {k: v for k, v in data.items()
                  if k in ('username', 'first_name', 'last_name', 'email', 'phone', 'specialization')
                  and v is not None}
        if 'phone' in fields:
            fields['phone'] = fields['phone'] or None
        if data.get('password'):
            fields['password'] = make_password(data['password'])
        user = self.gateway.update_by_id('users', user_id, fields)
        if not user:
            raise NotFound('Staff member not found')
        log_action(user=actor, action='staff_update', object_type='user', object_id=user_id,
                   detail={'fields': sorted(k for k in fields if k != 'password')}, gateway=self.gateway)
        return self._present_staff([user])[0]

    def delete_staff(self, actor, user_id) -> None:
        if not self.gateway.delete_by_id('users', user_id):
            raise NotFound('Staff member not found')
        log_action(user=actor, action='staff_delete', object_type='user', object_id=user_id,
                   gateway=self.gateway)
