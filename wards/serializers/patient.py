import bleach
from rest_framework import serializers

from wards.models import Patient

TEXT_FIELDS = ('pan', 'name', 'phone', 'address', 'symptoms')


def clean_text(v):
    return bleach.clean((v or '').strip(), strip=True)


class _PatientFieldsMixin:
    """Trim and strip markup from the free-text fields."""

    def to_internal_value(self, data):
        values = super().to_internal_value(data)
        for field in TEXT_FIELDS:
            if values.get(field) is not None:
                values[field] = clean_text(values[field])
        return values


class AdmitPatientSerializer(_PatientFieldsMixin, serializers.Serializer):
    pan = serializers.CharField(max_length=100, required=False)
    name = serializers.CharField(max_length=200)
    age = serializers.IntegerField(min_value=0, max_value=130)
    bloodGroup = serializers.ChoiceField(choices=Patient.BLOOD_GROUPS, source='blood_group')
    gender = serializers.ChoiceField(choices=Patient.GENDERS)
    admittedAt = serializers.DateTimeField(source='admitted_at', required=False)
    phone = serializers.CharField(max_length=20)
    email = serializers.EmailField(required=False)
    address = serializers.CharField(max_length=500)
    careUnit = serializers.CharField(source='care_unit', max_length=32)
    bed = serializers.CharField(max_length=32)
    assignedDoctor = serializers.CharField(source='assigned_doctor', max_length=32)
    severity = serializers.ChoiceField(choices=Patient.SEVERITIES, default='normal')
    symptoms = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate_email(self, v):
        return v.lower()


class UpdatePatientSerializer(_PatientFieldsMixin, serializers.Serializer):
    pan = serializers.CharField(max_length=100, required=False)
    name = serializers.CharField(max_length=200, required=False)
    age = serializers.IntegerField(min_value=0, max_value=130, required=False)
    bloodGroup = serializers.ChoiceField(choices=Patient.BLOOD_GROUPS, source='blood_group', required=False)
    gender = serializers.ChoiceField(choices=Patient.GENDERS, required=False)
    phone = serializers.CharField(max_length=20, required=False)
    email = serializers.EmailField(required=False)
    address = serializers.CharField(max_length=500, required=False)
    severity = serializers.ChoiceField(choices=Patient.SEVERITIES, required=False)
    assignedDoctor = serializers.CharField(source='assigned_doctor', max_length=32, required=False)
    careUnit = serializers.CharField(source='care_unit', max_length=32, required=False)
    bed = serializers.CharField(max_length=32, required=False)
    symptoms = serializers.CharField(max_length=500, required=False, allow_blank=True)
    admittedAt = serializers.DateTimeField(source='admitted_at', required=False)
    dischargedAt = serializers.DateTimeField(source='discharged_at', required=False)
    isActive = serializers.BooleanField(source='is_active', required=False)

    def validate_email(self, v):
        return v.lower()

    def validate(self, attrs):
        admitted, discharged = attrs.get('admitted_at'), attrs.get('discharged_at')
        if admitted and discharged and discharged < admitted:
            raise serializers.ValidationError({'dischargedAt': 'dischargedAt cannot be before admittedAt'})
        return attrs
