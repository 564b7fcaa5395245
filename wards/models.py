"""
Database models for the ward management backend.

Care units own beds; patients are admitted into a bed of a care unit
and are looked after by a doctor (a :class:`User`).  References between
these records are stored without database constraints so that they
behave like opaque document references: the services in
:mod:`wards.services` keep them consistent.
"""
from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models


def new_id() -> str:
    return uuid.uuid4().hex


def _ref(to, related_name, null=False):
    """A foreign key that does not enforce referential integrity."""
    return models.ForeignKey(
        to,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=null,
        blank=null,
        related_name=related_name,
    )


class Role(models.Model):
    """A named set of permissions that can be assigned to users."""
    id = models.CharField(max_length=32, primary_key=True, default=new_id, editable=False)
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=255, blank=True)
    permissions = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name


class User(AbstractUser):
    """Staff member, doctor or administrator.

    The role is a reference to :class:`Role`.  Only active users may be
    assigned as a patient's doctor.
    """
    id = models.CharField(max_length=32, primary_key=True, default=new_id, editable=False)
    role = _ref(Role, 'users', null=True)
    phone = models.CharField(max_length=20, blank=True, null=True, unique=True)
    specialization = models.CharField(max_length=100, blank=True)
    created_by = _ref('User', '+', null=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role_id or '-'})"


class CareUnit(models.Model):
    """A ward or department grouping beds (e.g. ICU)."""
    id = models.CharField(max_length=32, primary_key=True, default=new_id, editable=False)
    care_unit = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    created_by = _ref(User, '+', null=True)
    updated_by = _ref(User, '+', null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.care_unit


class Bed(models.Model):
    """A bed inside a care unit.

    ``occupied`` is true exactly when one currently admitted patient
    references the bed.
    """
    id = models.CharField(max_length=32, primary_key=True, default=new_id, editable=False)
    bed_name = models.CharField(max_length=100)
    care_unit = _ref(CareUnit, 'beds')
    # filtered on when looking for free beds
    occupied = models.BooleanField(default=False, db_index=True)
    is_active = models.BooleanField(default=True)
    created_by = _ref(User, '+')
    updated_by = _ref(User, '+', null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['care_unit', 'is_active'], name='wards_bed_care_un_3b6f9c_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['bed_name', 'care_unit'],
                condition=models.Q(is_active=True),
                name='unique_active_bed_name_per_care_unit',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.bed_name} ({self.care_unit_id})"


class Patient(models.Model):
    BLOOD_GROUPS = ['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-']
    GENDERS = ['male', 'female', 'other']
    SEVERITIES = ['normal', 'severe', 'critical']

    id = models.CharField(max_length=32, primary_key=True, default=new_id, editable=False)
    # External identifier (e.g. national ID); unique when present
    pan = models.CharField(max_length=100, unique=True, null=True, blank=True)
    name = models.CharField(max_length=200, blank=True)
    age = models.PositiveSmallIntegerField(null=True, blank=True)
    blood_group = models.CharField(max_length=3, choices=[(b, b) for b in BLOOD_GROUPS], blank=True)
    gender = models.CharField(max_length=10, choices=[(g, g) for g in GENDERS])
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    address = models.CharField(max_length=500, blank=True)
    severity = models.CharField(
        max_length=10, choices=[(s, s) for s in SEVERITIES], default='normal'
    )
    symptoms = models.CharField(max_length=500, blank=True)

    care_unit = _ref(CareUnit, 'patients')
    bed = _ref(Bed, 'patients')
    assigned_doctor = _ref(User, 'patients', null=True)

    admitted_at = models.DateTimeField()
    discharged_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    created_by = _ref(User, '+')
    updated_by = _ref(User, '+', null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['care_unit', 'is_active'], name='wards_patie_care_un_5d1e0a_idx'),
            models.Index(fields=['bed', 'is_active'], name='wards_patie_bed_id_8c2f4b_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.name or self.id} ({self.bed_id})"


class Fluid(models.Model):
    """Fluid intake/output record kept per care unit."""
    id = models.CharField(max_length=32, primary_key=True, default=new_id, editable=False)
    care_unit = _ref(CareUnit, 'fluids')
    patient = _ref(Patient, 'fluids', null=True)
    name = models.CharField(max_length=100)
    volume_ml = models.PositiveIntegerField(default=0)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} {self.volume_ml}ml"


class Medication(models.Model):
    """Medication administered within a care unit."""
    id = models.CharField(max_length=32, primary_key=True, default=new_id, editable=False)
    care_unit = _ref(CareUnit, 'medications')
    patient = _ref(Patient, 'medications', null=True)
    name = models.CharField(max_length=100)
    dose = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} {self.dose}".strip()


class HospitalLogo(models.Model):
    """Uploaded hospital logo image; at most one is active."""
    id = models.CharField(max_length=32, primary_key=True, default=new_id, editable=False)
    name = models.CharField(max_length=255)
    image = models.FileField(upload_to="logos/", max_length=512)
    is_active = models.BooleanField(default=True, db_index=True)
    created_by = _ref(User, '+', null=True)
    updated_by = _ref(User, '+', null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name


class AuditEvent(models.Model):
    user = _ref(User, '+', null=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='wards_audit_action_1f7c2e_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='wards_audit_object__9a4d6b_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
