from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from control_panel.models import BillingTransaction, Panchayath, Product, Stall, Ward
from web_portal.models import AdminAccount, AdminPermission

SUPER_PASSWORD = 'super-secret'
LIMITED_PASSWORD = 'limited-secret'
STALL_PASSWORD = 'stall-pass'


@pytest.fixture(autouse=True)
def isolated_environment(settings, tmp_path):
    settings.API_LOG_DIRECTORY = str(tmp_path / 'logs')
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


def make_admin(username, password, role='admin', permissions=None):
    admin = AdminAccount(username=username, role=role)
    admin.set_password(password)
    admin.save()
    for module, actions in (permissions or {}).items():
        AdminPermission.objects.create(
            admin=admin,
            module=module,
            **{f'can_{action}': True for action in actions},
        )
    return admin


def login_admin(client, username, password):
    response = client.post('/api/admin/login/', {'username': username, 'password': password}, format='json')
    assert response.status_code == 200, response.data
    return response.data['data']['access_token']


@pytest.fixture
def super_admin(db):
    return make_admin('root', SUPER_PASSWORD, role='super_admin')


@pytest.fixture
def admin_client(super_admin):
    client = APIClient()
    token = login_admin(client, 'root', SUPER_PASSWORD)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    return client


@pytest.fixture
def limited_admin(db):
    return make_admin('cashier', LIMITED_PASSWORD, permissions={'billing': ('read',)})


@pytest.fixture
def limited_client(limited_admin):
    client = APIClient()
    token = login_admin(client, 'cashier', LIMITED_PASSWORD)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    return client


@pytest.fixture
def panchayath(db):
    panchayath = Panchayath.objects.create(name='Kodur')
    Ward.objects.bulk_create([Ward(panchayath=panchayath, ward_number=str(n)) for n in (1, 2, 3)])
    return panchayath


@pytest.fixture
def stall(db):
    stall = Stall(
        counter_name='Payasam Corner',
        participant_name='Shabna',
        mobile='9876543210',
        registration_fee=Decimal('500'),
        is_verified=True,
    )
    stall.set_password(STALL_PASSWORD)
    stall.save()
    return stall


@pytest.fixture
def product(stall):
    return Product.objects.create(
        stall=stall,
        product_name='Palada',
        cost_price=Decimal('40'),
        selling_price=Decimal('50'),
        event_margin=Decimal('20'),
    )


@pytest.fixture
def bill(admin_client, stall, product):
    response = admin_client.post('/api/bills/', {
        'stall_id': stall.id,
        'items': [{'product_id': product.id, 'quantity': 4}],
        'customer_name': 'Anil',
    }, format='json')
    assert response.status_code == 201, response.data
    return BillingTransaction.objects.get(id=response.data['data']['id'])


@pytest.fixture
def stall_client(stall):
    client = APIClient()
    response = client.post('/api/stall/login/', {'mobile': stall.mobile, 'password': STALL_PASSWORD}, format='json')
    assert response.status_code == 200, response.data
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['data']['access_token']}")
    return client
