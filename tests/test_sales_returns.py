import re
from decimal import Decimal

import pytest

from control_panel.models import SalesReturn

pytestmark = pytest.mark.django_db


def post_return(client, bill, quantity, name='Palada'):
    return client.post('/api/sales-returns/', {
        'bill_id': bill.id,
        'items': [{'name': name, 'quantity': quantity}],
        'reason': 'Spilled',
    }, format='json')


def test_return_is_priced_from_the_bill(admin_client, bill):
    response = post_return(admin_client, bill, 2)

    assert response.status_code == 201, response.data
    data = response.data['data']
    assert re.fullmatch(r'RET-\d{8}-0001', data['return_number'])
    assert Decimal(data['return_amount']) == Decimal('100.00')
    assert data['items'] == [{'name': 'Palada', 'quantity': 2, 'price': 50.0, 'amount': 100.0}]
    assert data['stall'] == bill.stall_id


def test_return_quantity_cannot_exceed_billed(admin_client, bill):
    response = post_return(admin_client, bill, 5)

    assert response.status_code == 400
    assert not SalesReturn.objects.exists()


def test_returns_are_checked_cumulatively(admin_client, bill):
    assert post_return(admin_client, bill, 3).status_code == 201

    over = post_return(admin_client, bill, 2)
    assert over.status_code == 400
    assert 'cannot exceed 1' in over.data['message']

    assert post_return(admin_client, bill, 1).status_code == 201


def test_duplicate_rows_are_merged_before_checking(admin_client, bill):
    response = admin_client.post('/api/sales-returns/', {
        'bill_id': bill.id,
        'items': [{'name': 'Palada', 'quantity': 3}, {'name': 'Palada', 'quantity': 2}],
    }, format='json')

    assert response.status_code == 400


def test_all_zero_quantities_are_rejected(admin_client, bill):
    response = post_return(admin_client, bill, 0)

    assert response.status_code == 400
    assert response.data['message'] == 'Enter a return quantity for at least one item'


def test_unknown_item_is_rejected(admin_client, bill):
    assert post_return(admin_client, bill, 1, name='Biriyani').status_code == 400


def test_list_returns_for_bill_with_total(admin_client, bill):
    post_return(admin_client, bill, 1)
    post_return(admin_client, bill, 2)

    data = admin_client.get('/api/sales-returns/', {'bill_id': bill.id}).data['data']

    assert data['total_items'] == 2
    assert data['total_return_amount'] == '150.00'

    listed_bill = admin_client.get('/api/bills/', {'bill_id': bill.id}).data['data']
    assert Decimal(listed_bill['returned_amount']) == Decimal('150.00')


def test_return_uses_each_billed_line_price(admin_client, stall, product):
    created = admin_client.post('/api/bills/', {
        'stall_id': stall.id,
        'items': [
            {'product_id': product.id, 'quantity': 1},
            {'product_id': product.id, 'quantity': 1, 'price': '10'},
        ],
    }, format='json')
    assert created.status_code == 201, created.data
    bill_id = created.data['data']['id']
    assert Decimal(created.data['data']['total']) == Decimal('60.00')

    first = admin_client.post('/api/sales-returns/', {'bill_id': bill_id, 'items': [{'name': 'Palada', 'quantity': 1}]}, format='json')
    assert Decimal(first.data['data']['return_amount']) == Decimal('50.00')

    second = admin_client.post('/api/sales-returns/', {'bill_id': bill_id, 'items': [{'name': 'Palada', 'quantity': 1}]}, format='json')
    assert Decimal(second.data['data']['return_amount']) == Decimal('10.00')


def test_full_return_never_exceeds_bill_total(admin_client, stall, product):
    created = admin_client.post('/api/bills/', {
        'stall_id': stall.id,
        'items': [
            {'product_id': product.id, 'quantity': 1},
            {'product_id': product.id, 'quantity': 1, 'price': '10'},
        ],
    }, format='json')

    response = admin_client.post('/api/sales-returns/', {
        'bill_id': created.data['data']['id'], 'items': [{'name': 'Palada', 'quantity': 2}],
    }, format='json')

    assert response.status_code == 201, response.data
    assert Decimal(response.data['data']['return_amount']) == Decimal('60.00')
    assert response.data['data']['items'][0]['price'] == 30.0
