from types import SimpleNamespace

import pytest
from rest_framework.test import APIClient

from wards.models import Bed, CareUnit, Role, User
from wards.tests.fakes import InMemoryGateway


@pytest.fixture
def gateway():
    return InMemoryGateway()


@pytest.fixture
def ward(gateway):
    """ICU with beds B1/B2, CCU with bed C1, a nurse (the actor) and a doctor."""
    role = gateway.create('roles', {'name': 'Staff'})
    nurse = gateway.create('users', {'username': 'nurse1', 'role': role['id']})
    doctor = gateway.create('users', {
        'username': 'drgrey', 'first_name': 'Meredith', 'last_name': 'Grey',
        'specialization': 'Surgery', 'role': role['id'],
    })
    icu = gateway.create('care_units', {'care_unit': 'ICU', 'created_by': nurse['id']})
    ccu = gateway.create('care_units', {'care_unit': 'CCU', 'created_by': nurse['id']})

    def bed(unit, name):
        return gateway.create('beds', {'bed_name': name, 'care_unit': unit['id'], 'created_by': nurse['id']})

    return SimpleNamespace(
        gateway=gateway,
        role=role,
        actor=SimpleNamespace(id=nurse['id'], username=nurse['username']),
        doctor=doctor,
        icu=icu,
        ccu=ccu,
        b1=bed(icu, 'B1'),
        b2=bed(icu, 'B2'),
        c1=bed(ccu, 'C1'),
    )


@pytest.fixture
def admission(ward):
    """Build validated admission data, as the admit serializer would produce it."""
    def build(bed=None, unit=None, **overrides):
        data = {
            'name': 'Ravi Kumar',
            'age': 45,
            'blood_group': 'O+',
            'gender': 'male',
            'phone': '9876543210',
            'address': '12 MG Road',
            'severity': 'normal',
            'care_unit': (unit or ward.icu)['id'],
            'bed': (bed or ward.b1)['id'],
            'assigned_doctor': ward.doctor['id'],
        }
        data.update(overrides)
        return data
    return build


# -- database backed fixtures ------------------------------------------------

@pytest.fixture
def staff_role(db):
    return Role.objects.create(name='Staff', description='Ward staff', permissions=['patient:read'])


@pytest.fixture
def admin_role(db):
    return Role.objects.create(name='Admin', description='Administrator', permissions=['*'])


@pytest.fixture
def admin_user(admin_role):
    return User.objects.create_user(username='admin1', password='P@ssw0rd1', role=admin_role)


@pytest.fixture
def doctor(staff_role):
    return User.objects.create_user(
        username='drhouse', password='P@ssw0rd1', role=staff_role,
        first_name='Gregory', last_name='House', specialization='Diagnostics',
    )


@pytest.fixture
def nurse(staff_role):
    return User.objects.create_user(username='nurse1', password='P@ssw0rd1', role=staff_role)


@pytest.fixture
def nurse_client(nurse):
    c = APIClient()
    c.force_authenticate(user=nurse)
    return c


@pytest.fixture
def admin_client(admin_user):
    c = APIClient()
    c.force_authenticate(user=admin_user)
    return c


@pytest.fixture
def icu(admin_user):
    unit = CareUnit.objects.create(care_unit='ICU', created_by=admin_user)
    return SimpleNamespace(
        unit=unit,
        b1=Bed.objects.create(bed_name='B1', care_unit=unit, created_by=admin_user),
        b2=Bed.objects.create(bed_name='B2', care_unit=unit, created_by=admin_user),
    )
