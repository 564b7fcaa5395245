import io

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.urls import reverse
from rest_framework.test import APIClient

from wards.models import Bed, HospitalLogo, Patient, Role, User

pytestmark = pytest.mark.django_db


# -- care units and beds -----------------------------------------------------

def test_care_unit_crud(admin_client):
    r = admin_client.post(reverse('care_units'), {'careUnit': ' <i>ICU</i> ', 'description': 'Intensive'}, format='json')
    assert r.status_code == 201
    assert r.data['careUnit'] == 'ICU'
    assert r.data['createdBy']['username'] == 'admin1'
    unit_id = r.data['id']

    r = admin_client.put(reverse('care_unit_detail', args=[unit_id]), {'description': 'Level 3'}, format='json')
    assert r.status_code == 200
    assert r.data['description'] == 'Level 3'
    assert r.data['careUnit'] == 'ICU'

    r = admin_client.get(reverse('care_unit_detail', args=[unit_id]))
    assert r.status_code == 200
    assert r.data['updatedBy']['username'] == 'admin1'

    assert admin_client.get(reverse('care_unit_detail', args=['missing'])).status_code == 404


def test_care_unit_requires_name(admin_client):
    r = admin_client.post(reverse('care_units'), {'careUnit': '<b></b>'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'validation_error'


def test_staff_cannot_change_care_units(nurse_client, icu):
    assert nurse_client.get(reverse('care_units')).status_code == 200
    r = nurse_client.post(reverse('care_units'), {'careUnit': 'NICU'}, format='json')
    assert r.status_code == 403
    assert nurse_client.delete(reverse('care_unit_detail', args=[icu.unit.id])).status_code == 403


def test_beds(admin_client, icu):
    url = reverse('care_unit_beds', args=[icu.unit.id])
    r = admin_client.post(url, {'bedName': 'A1'}, format='json')
    assert r.status_code == 201
    assert r.data['occupied'] is False

    r = admin_client.post(url, {'bedName': 'b1'}, format='json')
    assert r.status_code == 409
    assert r.data['error']['message'] == 'Bed already exists in this care unit'

    assert [b['bedName'] for b in admin_client.get(url).data] == ['A1', 'B1', 'B2']

    r = admin_client.put(reverse('bed_detail', args=[icu.b2.id]), {'bedName': 'B2-window'}, format='json')
    assert r.status_code == 200
    assert r.data['bedName'] == 'B2-window'


def test_bed_delete(admin_client, icu):
    Bed.objects.filter(pk=icu.b1.pk).update(occupied=True)
    r = admin_client.delete(reverse('bed_detail', args=[icu.b1.id]))
    assert r.status_code == 409
    assert Bed.objects.filter(pk=icu.b1.pk).exists()

    assert admin_client.delete(reverse('bed_detail', args=[icu.b2.id])).status_code == 204
    assert not Bed.objects.filter(pk=icu.b2.pk).exists()
    assert admin_client.delete(reverse('bed_detail', args=[icu.b2.id])).status_code == 404


def test_beds_of_unknown_unit(admin_client):
    assert admin_client.get(reverse('care_unit_beds', args=['missing'])).status_code == 404


# -- staff -------------------------------------------------------------------

def staff_payload(**overrides):
    data = {
        'firstName': 'James',
        'lastName': 'Wilson',
        'username': 'drwilson',
        'password': 'oncology1',
        'email': 'wilson@example.com',
        'phone': '5550100',
        'specialization': 'Oncology',
    }
    data.update(overrides)
    return data


def test_create_and_list_staff(admin_client, staff_role, doctor):
    r = admin_client.post(reverse('staff'), staff_payload(), format='json')
    assert r.status_code == 201
    assert r.data['role']['name'] == 'Staff'
    assert 'password' not in r.data
    user = User.objects.get(username='drwilson')
    assert user.role_id == staff_role.id
    assert user.check_password('oncology1')

    usernames = [u['username'] for u in admin_client.get(reverse('staff')).data]
    assert set(usernames) == {'drwilson', 'drhouse'}


@pytest.mark.parametrize('overrides, message', [
    ({'username': 'DRHOUSE'}, 'Username already exists'),
    ({'email': 'House@Example.com'}, 'Email already in use'),
    ({'phone': '5550199'}, 'Phone already in use'),
])
def test_staff_uniqueness(admin_client, doctor, overrides, message):
    User.objects.filter(pk=doctor.pk).update(email='house@example.com', phone='5550199')
    r = admin_client.post(reverse('staff'), staff_payload(**overrides), format='json')
    assert r.status_code == 409
    assert r.data['error']['message'] == message


def test_staff_input_validation(admin_client, staff_role):
    r = admin_client.post(reverse('staff'), staff_payload(username='dr wilson!', password='123'), format='json')
    assert r.status_code == 400
    assert set(r.data['error']['fields']) == {'username', 'password'}


def test_staff_role_must_be_configured(admin_client):
    r = admin_client.post(reverse('staff'), staff_payload(), format='json')
    assert r.status_code == 500
    assert r.data['error']['code'] == 'configuration_error'
    assert not User.objects.filter(username='drwilson').exists()


def test_update_and_delete_staff(admin_client, doctor):
    url = reverse('staff_detail', args=[doctor.id])
    r = admin_client.put(url, {'specialization': 'Nephrology', 'password': 'kidney42'}, format='json')
    assert r.status_code == 200
    assert r.data['specialization'] == 'Nephrology'
    doctor.refresh_from_db()
    assert doctor.check_password('kidney42')

    assert admin_client.delete(url).status_code == 204
    assert not User.objects.filter(pk=doctor.pk).exists()
    assert admin_client.delete(url).status_code == 404


def test_staff_endpoints_need_admin_role(nurse_client):
    assert nurse_client.get(reverse('staff')).status_code == 403
    assert nurse_client.post(reverse('staff'), staff_payload(), format='json').status_code == 403


# -- hospital logo -----------------------------------------------------------

@pytest.fixture
def media(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path
    return tmp_path


def png(name='logo.png'):
    return SimpleUploadedFile(name, b'\x89PNG\r\n\x1a\n' + b'\x00' * 32, content_type='image/png')


def test_logo_upload_and_public_read(nurse_client, media):
    assert APIClient().get(reverse('logos')).data == {'logoUrl': None}

    r = nurse_client.post(reverse('logos'), {'logo': png()}, format='multipart')
    assert r.status_code == 201
    assert r.data['logoUrl'].startswith('/uploads/logos/')
    assert (media / HospitalLogo.objects.get().image.name).exists()

    public = APIClient().get(reverse('logos'))
    assert public.status_code == 200
    assert public.data['logoUrl'] == r.data['logoUrl']


def test_logo_upload_rejects_bad_input(nurse_client, media):
    r = nurse_client.post(reverse('logos'), {}, format='multipart')
    assert r.status_code == 400
    assert r.data['error']['message'] == 'No file uploaded'

    pdf = SimpleUploadedFile('doc.pdf', b'%PDF-1.4', content_type='application/pdf')
    r = nurse_client.post(reverse('logos'), {'logo': pdf}, format='multipart')
    assert r.status_code == 415
    assert HospitalLogo.objects.count() == 0


def test_logo_upload_needs_authentication(media):
    r = APIClient().post(reverse('logos'), {'logo': png()}, format='multipart')
    assert r.status_code == 401


def test_logo_switch_and_delete(nurse_client, media):
    first = nurse_client.post(reverse('logos'), {'logo': png('a.png')}, format='multipart').data
    second = nurse_client.post(reverse('logos'), {'logo': png('b.png')}, format='multipart').data
    assert HospitalLogo.objects.filter(is_active=True).get().id == second['id']

    r = nurse_client.put(reverse('logo_detail', args=[first['id']]), {'isActive': True}, format='json')
    assert r.status_code == 200
    assert HospitalLogo.objects.filter(is_active=True).get().id == first['id']

    detail = nurse_client.get(reverse('logo_detail', args=[first['id']]))
    assert detail.data['name'] == 'a.png'
    assert detail.data['isActive'] is True

    r = nurse_client.delete(reverse('logo_delete_active'))
    assert r.status_code == 200
    assert not HospitalLogo.objects.filter(pk=first['id']).exists()
    assert nurse_client.delete(reverse('logo_delete_active')).status_code == 404


# -- auth, health, commands --------------------------------------------------

def test_jwt_login_grants_access(nurse):
    client = APIClient()
    r = client.post(reverse('token_obtain_pair'), {'username': 'nurse1', 'password': 'P@ssw0rd1'}, format='json')
    assert r.status_code == 200
    assert r.data['access'] and r.data['refresh']
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['access']}")
    assert client.get(reverse('patients')).status_code == 200


def test_jwt_login_rejects_bad_password(nurse):
    r = APIClient().post(reverse('token_obtain_pair'), {'username': 'nurse1', 'password': 'wrong'}, format='json')
    assert r.status_code == 401
    assert r.data['ok'] is False


def test_healthz():
    r = APIClient().get('/healthz')
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True, 'staffRole': False}

    Role.objects.create(name='staff')
    assert APIClient().get('/healthz').json()['staffRole'] is True


def test_metrics_exposed():
    assert APIClient().get('/metrics').status_code == 200


def test_ensure_roles_is_idempotent():
    out = io.StringIO()
    call_command('ensure_roles', stdout=out)
    call_command('ensure_roles', stdout=out)
    assert sorted(Role.objects.values_list('name', flat=True)) == ['Admin', 'Staff']
    assert 'exists: Staff' in out.getvalue()


def test_reconcile_beds_command(icu, doctor, admin_user):
    Patient.objects.create(
        name='Ravi', gender='male', care_unit=icu.unit, bed=icu.b1, assigned_doctor=doctor,
        admitted_at='2024-05-01T10:00:00Z', created_by=admin_user,
    )
    Bed.objects.filter(pk=icu.b2.pk).update(occupied=True)

    out = io.StringIO()
    call_command('reconcile_beds', '--dry-run', stdout=out)
    assert 'would correct' in out.getvalue()
    icu.b1.refresh_from_db()
    assert icu.b1.occupied is False

    call_command('reconcile_beds', stdout=out)
    icu.b1.refresh_from_db()
    icu.b2.refresh_from_db()
    assert icu.b1.occupied is True
    assert icu.b2.occupied is False
