import pytest
from django.core.files.storage import FileSystemStorage
from django.core.files.uploadedfile import SimpleUploadedFile

from wards.exceptions import NotFound, PayloadTooLarge, UnsupportedMediaType
from wards.services.logos import LogoLibrary

PNG = b'\x89PNG\r\n\x1a\n' + b'\x00' * 64


@pytest.fixture
def storage(tmp_path):
    return FileSystemStorage(location=str(tmp_path), base_url='/uploads/')


@pytest.fixture
def library(gateway, storage):
    return LogoLibrary(gateway, storage)


def upload(name='logo.png', content=PNG, content_type='image/png'):
    return SimpleUploadedFile(name, content, content_type=content_type)


def test_no_active_logo(library):
    assert library.get_active_logo() == {'logoUrl': None}


def test_upload_becomes_active(ward, library, storage):
    first = library.create_logo(ward.actor, upload('old.png'))
    second = library.create_logo(ward.actor, upload('new.png'))
    assert second['message'] == 'Logo uploaded successfully'
    assert second['logoUrl'].startswith('/uploads/logos/logo-')
    assert second['logoUrl'].endswith('.png')
    assert library.get_active_logo() == {'logoUrl': second['logoUrl']}
    assert ward.gateway.find_by_id('logos', first['id'])['is_active'] is False
    stored = ward.gateway.find_by_id('logos', second['id'])['image']
    assert storage.exists(stored)


def test_upload_rejects_type(ward, library, storage):
    with pytest.raises(UnsupportedMediaType):
        library.create_logo(ward.actor, upload('logo.svg', b'<svg/>', 'image/svg+xml'))
    assert not ward.gateway.tables['logos']


def test_upload_rejects_size(ward, library, settings):
    settings.UPLOAD_MAX_MB = 0
    with pytest.raises(PayloadTooLarge):
        library.create_logo(ward.actor, upload())


def test_failed_record_write_removes_file(ward, library, storage, tmp_path):
    ward.gateway.fail('create', 'logos', RuntimeError('db down'))
    with pytest.raises(RuntimeError):
        library.create_logo(ward.actor, upload())
    assert not list((tmp_path / 'logos').iterdir())


def test_get_and_update_logo(ward, library):
    first = library.create_logo(ward.actor, upload('old.png'))
    library.create_logo(ward.actor, upload('new.png'))

    detail = library.get_logo(first['id'])
    assert detail['name'] == 'old.png'
    assert detail['isActive'] is False
    assert detail['createdBy']['username'] == 'nurse1'

    result = library.update_logo(ward.actor, first['id'], True)
    assert result['isActive'] is True
    assert library.get_active_logo()['logoUrl'] == first['logoUrl']
    assert len(ward.gateway.find_many('logos', {'is_active': True})) == 1


def test_unknown_logo(library):
    with pytest.raises(NotFound):
        library.get_logo('missing')
    with pytest.raises(NotFound):
        library.update_logo(None, 'missing', True)


def test_delete_active_logo(ward, library, storage):
    created = library.create_logo(ward.actor, upload())
    name = ward.gateway.find_by_id('logos', created['id'])['image']
    assert library.delete_active_logo(ward.actor) == {'message': 'Logo deleted successfully', 'logoUrl': None}
    assert not storage.exists(name)
    assert library.get_active_logo() == {'logoUrl': None}
    with pytest.raises(NotFound) as e:
        library.delete_active_logo(ward.actor)
    assert e.value.message == 'No active logo found'
