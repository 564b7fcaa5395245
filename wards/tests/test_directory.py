import pytest
from django.contrib.auth.hashers import check_password

from wards.exceptions import ConfigurationError, Conflict, NotFound
from wards.services.directory import Directory


@pytest.fixture
def directory(gateway):
    return Directory(gateway)


def test_care_unit_create_and_list(ward, directory):
    unit = directory.create_care_unit(ward.actor, {'care_unit': 'NICU', 'description': 'Neonatal'})
    assert unit['careUnit'] == 'NICU'
    assert unit['createdBy'] == {'id': ward.actor.id, 'username': 'nurse1'}
    assert unit['updatedBy'] is None
    assert [u['careUnit'] for u in directory.list_care_units()] == ['NICU', 'CCU', 'ICU']


def test_care_unit_update(ward, directory):
    unit = directory.update_care_unit(ward.actor, ward.icu['id'], {'description': 'Intensive care'})
    assert unit['careUnit'] == 'ICU'
    assert unit['description'] == 'Intensive care'
    assert unit['updatedBy']['username'] == 'nurse1'
    with pytest.raises(NotFound):
        directory.update_care_unit(ward.actor, 'missing', {'care_unit': 'X'})


def test_care_unit_delete_cascades(ward, directory):
    gw = ward.gateway
    gw.create('fluids', {'care_unit': ward.icu['id'], 'name': 'Saline', 'volume_ml': 500})
    gw.create('medications', {'care_unit': ward.icu['id'], 'name': 'Paracetamol', 'dose': '500mg'})
    gw.create('medications', {'care_unit': ward.ccu['id'], 'name': 'Heparin'})

    result = directory.delete_care_unit(ward.actor, ward.icu['id'])
    assert result['message'] == 'Care unit and its beds, fluids, medications deleted successfully'
    assert result['deleted'] == {'beds': 2, 'fluids': 1, 'medications': 1}
    assert gw.find_by_id('care_units', ward.icu['id']) is None
    assert [b['bed_name'] for b in gw.find_many('beds')] == ['C1']
    assert len(gw.find_many('medications')) == 1


def test_care_unit_delete_unknown(directory):
    with pytest.raises(NotFound):
        directory.delete_care_unit(None, 'missing')


def test_beds_listed_by_name(ward, directory):
    directory.create_bed(ward.actor, ward.icu['id'], {'bed_name': 'A9'})
    assert [b['bedName'] for b in directory.list_beds(ward.icu['id'])] == ['A9', 'B1', 'B2']


def test_bed_name_unique_per_unit(ward, directory):
    with pytest.raises(Conflict) as e:
        directory.create_bed(ward.actor, ward.icu['id'], {'bed_name': 'b1'})
    assert e.value.message == 'Bed already exists in this care unit'
    # the same name in another unit is fine
    bed = directory.create_bed(ward.actor, ward.ccu['id'], {'bed_name': 'B1'})
    assert bed['occupied'] is False
    with pytest.raises(Conflict):
        directory.update_bed(ward.actor, ward.b2['id'], {'bed_name': 'B1'})
    assert directory.update_bed(ward.actor, ward.b2['id'], {'bed_name': 'B2-window'})['bedName'] == 'B2-window'


def test_bed_for_unknown_unit(ward, directory):
    with pytest.raises(NotFound):
        directory.create_bed(ward.actor, 'missing', {'bed_name': 'X1'})


def test_occupied_bed_cannot_be_deleted(ward, directory):
    ward.gateway.update_by_id('beds', ward.b1['id'], {'occupied': True})
    with pytest.raises(Conflict):
        directory.delete_bed(ward.actor, ward.b1['id'])
    directory.delete_bed(ward.actor, ward.b2['id'])
    assert ward.gateway.find_by_id('beds', ward.b2['id']) is None
    assert ward.gateway.find_by_id('beds', ward.b1['id']) is not None


def test_staff_role_must_exist(gateway):
    with pytest.raises(ConfigurationError) as e:
        Directory(gateway).staff_role()
    assert e.value.message == "Default 'Staff' role not configured"


def test_create_staff(ward, directory):
    created = directory.create_staff(ward.actor, {
        'username': 'drwho', 'password': 'tardis42', 'first_name': 'John',
        'last_name': 'Smith', 'email': 'who@example.com', 'phone': '5550100',
    })
    assert created['role']['name'] == 'Staff'
    assert created['createdBy']['username'] == 'nurse1'
    stored = ward.gateway.find_by_id('users', created['id'])
    assert stored['password'] != 'tardis42'
    assert check_password('tardis42', stored['password'])
    assert 'drwho' in [u['username'] for u in directory.list_staff()]


@pytest.mark.parametrize('field, value, message', [
    ('username', 'DRGREY', 'Username already exists'),
    ('email', 'GREY@example.com', 'Email already in use'),
    ('phone', '5550199', 'Phone already in use'),
])
def test_staff_uniqueness(ward, directory, field, value, message):
    ward.gateway.update_by_id('users', ward.doctor['id'], {'email': 'grey@example.com', 'phone': '5550199'})
    data = {'username': 'newbie', 'password': 'secret1', 'first_name': 'N', 'last_name': 'B'}
    data[field] = value
    with pytest.raises(Conflict) as e:
        directory.create_staff(ward.actor, data)
    assert e.value.message == message


def test_update_staff(ward, directory):
    ward.gateway.update_by_id('users', ward.doctor['id'], {'phone': '5550199'})
    updated = directory.update_staff(ward.actor, ward.doctor['id'], {
        'specialization': 'Cardiology', 'phone': '', 'password': 'newpass1',
    })
    assert updated['specialization'] == 'Cardiology'
    assert updated['phone'] is None
    assert check_password('newpass1', ward.gateway.find_by_id('users', ward.doctor['id'])['password'])
    # keeping one's own username is not a conflict
    assert directory.update_staff(ward.actor, ward.doctor['id'], {'username': 'drgrey'})['username'] == 'drgrey'


def test_update_and_delete_unknown_staff(ward, directory):
    with pytest.raises(NotFound):
        directory.update_staff(ward.actor, 'missing', {'first_name': 'X'})
    with pytest.raises(NotFound):
        directory.delete_staff(ward.actor, 'missing')
    directory.delete_staff(ward.actor, ward.doctor['id'])
    assert ward.gateway.find_by_id('users', ward.doctor['id']) is None


def deleted_before_write(monkeypatch, gw):
    update_by_id = gw.update_by_id

    def update(collection, id, fields):
        gw.tables[collection].pop(id, None)
        return update_by_id(collection, id, fields)

    monkeypatch.setattr(gw, 'update_by_id', update)


def test_rename_of_bed_deleted_meanwhile(ward, directory, monkeypatch):
    deleted_before_write(monkeypatch, ward.gateway)
    with pytest.raises(NotFound) as e:
        directory.update_bed(ward.actor, ward.b2['id'], {'bed_name': 'B2-window'})
    assert e.value.message == 'Bed not found'


def test_update_of_staff_deleted_meanwhile(ward, directory, monkeypatch):
    deleted_before_write(monkeypatch, ward.gateway)
    with pytest.raises(NotFound) as e:
        directory.update_staff(ward.actor, ward.doctor['id'], {'specialization': 'Cardiology'})
    assert e.value.message == 'Staff member not found'
