import bleach
from rest_framework import serializers


class CareUnitSerializer(serializers.Serializer):
    careUnit = serializers.CharField(source='care_unit', min_length=1, max_length=100)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate_careUnit(self, v):
        v = bleach.clean((v or '').strip(), strip=True)
        if not v:
            raise serializers.ValidationError('careUnit may not be blank')
        return v


class BedSerializer(serializers.Serializer):
    bedName = serializers.CharField(source='bed_name', min_length=1, max_length=100)


class StaffCreateSerializer(serializers.Serializer):
    firstName = serializers.CharField(source='first_name', min_length=1, max_length=100)
    lastName = serializers.CharField(source='last_name', min_length=1, max_length=100)
    email = serializers.EmailField(required=False)
    # numbers are accepted and stored as strings
    phone = serializers.CharField(max_length=20, required=False)
    specialization = serializers.CharField(max_length=100, required=False, allow_blank=True)
    username = serializers.RegexField(r'^[A-Za-z0-9]+$', min_length=3, max_length=30)
    password = serializers.CharField(min_length=6, write_only=True)


class StaffUpdateSerializer(serializers.Serializer):
    firstName = serializers.CharField(source='first_name', min_length=1, max_length=100, required=False)
    lastName = serializers.CharField(source='last_name', min_length=1, max_length=100, required=False)
    email = serializers.EmailField(required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    specialization = serializers.CharField(max_length=100, required=False, allow_blank=True)
    username = serializers.RegexField(r'^[A-Za-z0-9]+$', min_length=3, max_length=30, required=False)
    password = serializers.CharField(min_length=6, write_only=True, required=False)


class LogoUpdateSerializer(serializers.Serializer):
    isActive = serializers.BooleanField(source='is_active')
