import pytest
from rest_framework.test import APIClient

from conftest import LIMITED_PASSWORD, SUPER_PASSWORD, login_admin, make_admin
from web_portal.models import AdminActivityLog, AdminLoginSession, AdminPermission

pytestmark = pytest.mark.django_db


def test_login_rejects_bad_password(super_admin, api_client):
    response = api_client.post('/api/admin/login/', {'username': 'root', 'password': 'nope'}, format='json')

    assert response.status_code == 401
    assert response.data == {'status': 'fail', 'message': 'Invalid username or password'}
    assert not AdminLoginSession.objects.exists()


def test_login_rejects_inactive_admin(api_client):
    admin = make_admin('retired', 'retired-pass')
    admin.is_active = False
    admin.save()

    response = api_client.post('/api/admin/login/', {'username': 'retired', 'password': 'retired-pass'}, format='json')

    assert response.status_code == 401


def test_login_requires_both_fields(api_client):
    response = api_client.post('/api/admin/login/', {'username': 'root'}, format='json')
    assert response.status_code == 400


def test_super_admin_session_has_every_permission(super_admin, api_client):
    response = api_client.post('/api/admin/login/', {'username': 'root', 'password': SUPER_PASSWORD}, format='json')

    data = response.data['data']
    assert data['is_super_admin'] is True
    assert data['token_type'] == 'Bearer'
    assert all(row['can_delete'] for row in data['permissions'])
    assert 'food_coupon' in data['accessible_modules']
    assert AdminActivityLog.objects.filter(action='login', user=super_admin).exists()


def test_session_rehydrates_snapshot(limited_admin, limited_client):
    response = limited_client.get('/api/admin/session/')

    assert response.status_code == 200
    data = response.data['data']
    assert data['admin']['username'] == 'cashier'
    assert data['accessible_modules'] == ['billing']
    billing = next(row for row in data['permissions'] if row['module'] == 'billing')
    assert billing['can_read'] is True
    assert billing['can_create'] is False


def test_permission_changes_apply_from_next_login(limited_admin, limited_client):
    AdminPermission.objects.filter(admin=limited_admin, module='billing').update(can_create=True)

    stale = limited_client.get('/api/admin/session/').data['data']
    assert next(r for r in stale['permissions'] if r['module'] == 'billing')['can_create'] is False

    fresh_client = APIClient()
    fresh_client.credentials(HTTP_AUTHORIZATION=f"Bearer {login_admin(fresh_client, 'cashier', LIMITED_PASSWORD)}")
    fresh = fresh_client.get('/api/admin/session/').data['data']
    assert next(r for r in fresh['permissions'] if r['module'] == 'billing')['can_create'] is True


def test_missing_token_is_unauthorised(api_client):
    assert api_client.get('/api/admin/session/').status_code == 401
    assert api_client.get('/api/stalls/').status_code == 401


def test_module_permission_is_enforced_per_action(limited_client, stall):
    assert limited_client.get('/api/bills/').status_code == 200

    create = limited_client.post('/api/bills/', {'stall_id': stall.id, 'items': []}, format='json')
    assert create.status_code == 403

    other_module = limited_client.get('/api/stalls/')
    assert other_module.status_code == 403


def test_logout_ends_the_session(admin_client):
    response = admin_client.post('/api/admin/logout/')
    assert response.status_code == 200

    after = admin_client.get('/api/admin/session/')
    assert after.status_code == 401
    assert AdminLoginSession.objects.get().is_logged_out is True


def test_stall_token_is_rejected_on_admin_endpoints(stall_client):
    assert stall_client.get('/api/admin/session/').status_code == 401


def test_only_super_admin_manages_admins(limited_client, admin_client):
    assert limited_client.get('/api/admin/manage-admins/').status_code == 403

    response = admin_client.post('/api/admin/manage-admins/', {
        'username': 'desk',
        'password': 'desk-pass',
        'permissions': [{'module': 'registrations', 'can_read': True, 'can_create': True}],
    }, format='json')

    assert response.status_code == 201
    matrix = {row['module']: row for row in response.data['data']['permissions']}
    assert matrix['registrations']['can_create'] is True
    assert matrix['billing']['can_read'] is False


def test_duplicate_admin_username_is_rejected(admin_client, limited_admin):
    response = admin_client.post('/api/admin/manage-admins/', {'username': 'cashier', 'password': 'another'}, format='json')
    assert response.status_code == 400


def test_permission_matrix_upsert(admin_client, limited_admin):
    response = admin_client.put('/api/admin/permissions/', {
        'admin_id': limited_admin.id,
        'permissions': [{'module': 'billing', 'can_read': True, 'can_create': True, 'can_update': True}],
    }, format='json')

    assert response.status_code == 200
    row = AdminPermission.objects.get(admin=limited_admin, module='billing')
    assert row.can_update is True
    assert row.can_delete is False

    listed = admin_client.get('/api/admin/permissions/', {'admin_id': limited_admin.id})
    assert listed.status_code == 200


def test_super_admin_cannot_delete_self(admin_client, super_admin):
    response = admin_client.delete('/api/admin/manage-admins/', {'admin_id': super_admin.id}, format='json')
    assert response.status_code == 400
