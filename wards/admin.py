"""
Django admin registrations for the ward models.

Occupancy flags can be edited here by hand; run ``manage.py
reconcile_beds`` afterwards to bring them back in line with the
admitted patients.
"""

from django.contrib import admin

from .models import (
    AuditEvent,
    Bed,
    CareUnit,
    Fluid,
    HospitalLogo,
    Medication,
    Patient,
    Role,
    User,
)


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ('name', 'description', 'created_at')
    search_fields = ('name',)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'first_name', 'last_name', 'is_active', 'is_superuser')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'first_name', 'last_name', 'email', 'phone')


@admin.register(CareUnit)
class CareUnitAdmin(admin.ModelAdmin):
    list_display = ('care_unit', 'description', 'created_at')
    search_fields = ('care_unit',)


@admin.register(Bed)
class BedAdmin(admin.ModelAdmin):
    list_display = ('bed_name', 'care_unit', 'occupied', 'is_active')
    list_filter = ('occupied', 'is_active', 'care_unit')
    search_fields = ('bed_name',)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('name', 'pan', 'care_unit', 'bed', 'severity', 'admitted_at', 'discharged_at', 'is_active')
    list_filter = ('severity', 'is_active', 'care_unit')
    search_fields = ('name', 'pan', 'phone')


@admin.register(Fluid)
class FluidAdmin(admin.ModelAdmin):
    list_display = ('name', 'volume_ml', 'care_unit', 'patient', 'created_at')
    list_filter = ('care_unit',)


@admin.register(Medication)
class MedicationAdmin(admin.ModelAdmin):
    list_display = ('name', 'dose', 'care_unit', 'patient', 'created_at')
    list_filter = ('care_unit',)


@admin.register(HospitalLogo)
class HospitalLogoAdmin(admin.ModelAdmin):
    list_display = ('name', 'is_active', 'created_at')
    list_filter = ('is_active',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('object_id',)
