from decimal import Decimal

import pytest

from conftest import STALL_PASSWORD
from control_panel.models import BillingTransaction, Product, Stall, StallLoginSession

pytestmark = pytest.mark.django_db


def test_stall_login_with_formatted_mobile(api_client, stall):
    response = api_client.post('/api/stall/login/', {'mobile': '98765 43210', 'password': STALL_PASSWORD}, format='json')

    assert response.status_code == 200
    assert response.data['data']['stall']['counter_name'] == 'Payasam Corner'
    assert StallLoginSession.objects.filter(stall=stall).count() == 1


def test_stall_login_records_device(api_client, stall):
    agent = 'Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Mobile Safari/537.36'

    api_client.post('/api/stall/login/', {'mobile': stall.mobile, 'password': STALL_PASSWORD}, format='json', HTTP_USER_AGENT=agent)

    device = StallLoginSession.objects.get(stall=stall).device_info
    assert device['operating_system'] == 'Android'
    assert device['is_mobile_device'] is True


def test_stall_login_rejects_bad_password(api_client, stall):
    response = api_client.post('/api/stall/login/', {'mobile': stall.mobile, 'password': 'wrong'}, format='json')

    assert response.status_code == 401
    assert response.data['message'] == 'Invalid mobile number or password'


def test_dashboard_balance(stall_client, admin_client, bill, stall):
    data = stall_client.get('/api/stall/dashboard/').data['data']

    assert data['total_billed_count'] == 1
    assert data['total_billed_amount'] == Decimal('200.00')
    assert data['bill_balance'] == Decimal('160.00')
    assert data['fully_paid'] is False
    assert data['pending_orders'] == 1

    admin_client.post('/api/payments/', {
        'payment_type': 'other', 'amount_paid': '100', 'narration': 'Not for the stall',
    }, format='json')
    admin_client.post('/api/stalls/registration-fee/', {'stall_id': stall.id}, format='json')

    paid = stall_client.get('/api/stall/dashboard/').data['data']
    assert paid['bill_balance'] == Decimal('0.00')
    assert paid['fully_paid'] is True


def test_orders_and_delivery(stall_client, bill):
    pending = stall_client.get('/api/stall/orders/', {'delivery_status': 'pending'}).data['data']
    assert pending['total_items'] == 1

    delivered = stall_client.put('/api/stall/orders/deliver/', {'bill_id': bill.id}, format='json')
    assert delivered.status_code == 200
    assert delivered.data['data']['delivery_status'] == 'delivered'
    assert delivered.data['data']['status'] == 'pending'

    again = stall_client.put('/api/stall/orders/deliver/', {'bill_id': bill.id}, format='json')
    assert again.status_code == 409

    remaining = stall_client.get('/api/stall/orders/', {'delivery_status': 'pending'}).data['data']
    assert remaining['total_items'] == 0


def test_stall_cannot_touch_another_stalls_order(stall_client, admin_client, db):
    other = Stall.objects.create(counter_name='Juice', participant_name='J', mobile='9000000099', is_verified=True)
    juice = Product.objects.create(stall=other, product_name='Lime', cost_price=Decimal('10'), selling_price=Decimal('20'))
    created = admin_client.post('/api/bills/', {
        'stall_id': other.id, 'items': [{'product_id': juice.id, 'quantity': 1}],
    }, format='json')

    response = stall_client.put('/api/stall/orders/deliver/', {'bill_id': created.data['data']['id']}, format='json')

    assert response.status_code == 404
    assert BillingTransaction.objects.get(id=created.data['data']['id']).delivery_status == 'pending'


def test_admin_token_is_rejected_on_stall_endpoints(admin_client):
    assert admin_client.get('/api/stall/dashboard/').status_code == 401


def test_stall_logout(stall_client):
    assert stall_client.post('/api/stall/logout/').status_code == 200
    assert stall_client.get('/api/stall/dashboard/').status_code == 401
