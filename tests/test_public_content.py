import io

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image
from rest_framework.test import APIClient

from conftest import make_admin, login_admin
from web_portal.models import AdminActivityLog, Program, TeamMember

pytestmark = pytest.mark.django_db


def png_upload(name='stage.png'):
    buffer = io.BytesIO()
    Image.new('RGB', (8, 8), color=(200, 30, 30)).save(buffer, format='PNG')
    return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')


def test_program_crud_and_public_list(admin_client, api_client):
    created = admin_client.post('/api/programs/', {
        'name': 'Inauguration', 'date': '2026-01-10', 'time': '10:00', 'venue': 'Main stage',
    }, format='json')
    assert created.status_code == 201, created.data
    program_id = created.data['data']['id']

    public = api_client.get('/api/public/programs/').data['data']
    assert [p['name'] for p in public] == ['Inauguration']

    admin_client.put('/api/programs/', {'program_id': program_id, 'venue': 'Hall B'}, format='json')
    assert api_client.get('/api/public/programs/').data['data'][0]['venue'] == 'Hall B'

    assert admin_client.delete('/api/programs/', {'program_id': program_id}, format='json').status_code == 200
    assert not Program.objects.exists()
    assert AdminActivityLog.objects.filter(action='delete_program').exists()


def test_program_requires_date(admin_client):
    response = admin_client.post('/api/programs/', {'name': 'Quiz', 'time': '11:00', 'venue': 'Hall'}, format='json')
    assert response.status_code == 400


def test_team_roster_counts(admin_client):
    admin_client.post('/api/team/', {'name': 'Rajan', 'role': 'Convener', 'member_type': 'official'}, format='json')
    admin_client.post('/api/team/', {
        'name': 'Sini', 'role': 'Helpdesk', 'member_type': 'volunteer', 'shift': 'Morning', 'phone': '9876543200',
    }, format='json')

    data = admin_client.get('/api/team/').data['data']
    assert data['officials'] == 1
    assert data['volunteers'] == 1

    volunteers = admin_client.get('/api/team/', {'member_type': 'volunteer'}).data['data']
    assert [m['name'] for m in volunteers['results']] == ['Sini']


def test_team_member_phone_is_validated(admin_client):
    response = admin_client.post('/api/team/', {'name': 'X', 'role': 'Y', 'phone': '12'}, format='json')

    assert response.status_code == 400
    assert not TeamMember.objects.exists()


def test_programs_need_the_programs_permission(db):
    make_admin('teamlead', 'teamlead-pass', permissions={'team': ('read', 'create')})
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {login_admin(client, 'teamlead', 'teamlead-pass')}")

    assert client.get('/api/team/').status_code == 200
    assert client.get('/api/programs/').status_code == 403


def test_photo_upload_list_and_delete(admin_client, api_client):
    response = admin_client.post('/api/photos/', {'photos': [png_upload('a.png'), png_upload('b.png')]}, format='multipart')

    assert response.status_code == 201, response.data
    assert len(response.data['data']) == 2
    assert all(p['name'].endswith('.png') for p in response.data['data'])

    public = api_client.get('/api/public/photos/').data['data']
    assert len(public) == 2
    assert public[0]['url'].startswith('http://testserver/media/photos/')

    name = public[0]['name']
    assert admin_client.delete('/api/photos/', {'name': name}, format='json').status_code == 200
    assert len(api_client.get('/api/public/photos/').data['data']) == 1


def test_photo_upload_rejects_non_images(admin_client):
    bogus = SimpleUploadedFile('notes.png', b'not an image', content_type='image/png')

    response = admin_client.post('/api/photos/', {'photos': [bogus]}, format='multipart')

    assert response.status_code == 400
    assert response.data['rejected'] == ['notes.png']


def test_empty_gallery(api_client):
    response = api_client.get('/api/public/photos/')

    assert response.status_code == 200
    assert response.data['data'] == []
