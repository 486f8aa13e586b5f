import re
from decimal import Decimal

import pytest

from conftest import SUPER_PASSWORD
from control_panel.models import BillingTransaction, SalesReturn, Stall

pytestmark = pytest.mark.django_db


def test_create_bill_snapshots_items(bill, product, super_admin):
    assert re.fullmatch(r'RCP-\d{8}-0001', bill.receipt_number)
    assert bill.serial_number == 1
    assert bill.status == 'pending'
    assert bill.delivery_status == 'pending'
    assert bill.total == Decimal('200.00')
    assert bill.created_by == super_admin

    line = bill.items[0]
    assert line['product_id'] == product.id
    assert line['name'] == 'Palada'
    assert line['quantity'] == 4
    assert line['price'] == 50.0
    assert line['original_price'] == 50.0
    assert line['discount'] == 0.0
    assert line['event_margin'] == 20.0


def test_discounted_line_records_discount(admin_client, stall, product):
    response = admin_client.post('/api/bills/', {
        'stall_id': stall.id,
        'items': [{'product_id': product.id, 'quantity': 2, 'price': '45'}],
    }, format='json')

    assert response.status_code == 201
    data = response.data['data']
    assert Decimal(data['subtotal']) == Decimal('100.00')
    assert Decimal(data['total']) == Decimal('90.00')
    assert data['items'][0]['discount'] == 10.0


def test_price_above_mrp_is_rejected(admin_client, stall, product):
    response = admin_client.post('/api/bills/', {
        'stall_id': stall.id,
        'items': [{'product_id': product.id, 'quantity': 1, 'price': '60'}],
    }, format='json')

    assert response.status_code == 400
    assert not BillingTransaction.objects.exists()


def test_unverified_stall_cannot_be_billed(admin_client, product):
    Stall.objects.filter(id=product.stall_id).update(is_verified=False)
    response = admin_client.post('/api/bills/', {
        'stall_id': product.stall_id,
        'items': [{'product_id': product.id, 'quantity': 1}],
    }, format='json')

    assert response.status_code == 400


def test_serial_numbers_run_per_stall(admin_client, bill, product):
    second = admin_client.post('/api/bills/', {
        'stall_id': product.stall_id,
        'items': [{'product_id': product.id, 'quantity': 1}],
    }, format='json')

    assert second.data['data']['serial_number'] == 2
    assert second.data['data']['receipt_number'].endswith('-0002')


def test_mark_paid_is_one_way(admin_client, bill):
    response = admin_client.put('/api/bills/mark-paid/', {'bill_id': bill.id}, format='json')
    assert response.status_code == 200
    assert response.data['data']['status'] == 'paid'

    again = admin_client.put('/api/bills/mark-paid/', {'bill_id': bill.id}, format='json')
    assert again.status_code == 409


def test_edit_requires_verification_password(admin_client, bill):
    response = admin_client.put('/api/bills/', {
        'bill_id': bill.id, 'verification_password': 'wrong', 'total': '10',
    }, format='json')

    assert response.status_code == 403
    bill.refresh_from_db()
    assert bill.total == Decimal('200.00')


def test_edit_without_verification_password_is_forbidden(admin_client, bill):
    response = admin_client.put('/api/bills/', {'bill_id': bill.id, 'total': '10'}, format='json')

    assert response.status_code == 403
    bill.refresh_from_db()
    assert bill.total == Decimal('200.00')


def test_edit_changes_only_customer_and_total(admin_client, bill):
    items_before = bill.items
    response = admin_client.put('/api/bills/', {
        'bill_id': bill.id,
        'verification_password': SUPER_PASSWORD,
        'customer_name': 'Beena',
        'customer_mobile': '9123456780',
        'total': '180',
    }, format='json')

    assert response.status_code == 200, response.data
    bill.refresh_from_db()
    assert bill.customer_name == 'Beena'
    assert bill.customer_mobile == '9123456780'
    assert bill.total == Decimal('180.00')
    assert bill.subtotal == Decimal('180.00')
    assert bill.items == items_before


def test_delete_requires_verification_and_removes_returns(admin_client, bill):
    admin_client.post('/api/sales-returns/', {
        'bill_id': bill.id, 'items': [{'name': 'Palada', 'quantity': 1}],
    }, format='json')

    refused = admin_client.delete('/api/bills/', {'bill_id': bill.id, 'verification_password': 'wrong'}, format='json')
    assert refused.status_code == 403
    assert BillingTransaction.objects.filter(id=bill.id).exists()

    response = admin_client.delete('/api/bills/', {'bill_id': bill.id, 'verification_password': SUPER_PASSWORD}, format='json')
    assert response.status_code == 200
    assert response.data['data']['sales_returns_removed'] == 1
    assert not BillingTransaction.objects.exists()
    assert not SalesReturn.objects.exists()


def test_bill_list_filters(admin_client, bill, stall):
    admin_client.put('/api/bills/mark-paid/', {'bill_id': bill.id}, format='json')

    paid = admin_client.get('/api/bills/', {'stall_id': stall.id, 'status': 'paid'}).data['data']
    pending = admin_client.get('/api/bills/', {'status': 'pending'}).data['data']
    searched = admin_client.get('/api/bills/', {'search': 'anil'}).data['data']
    today = admin_client.get('/api/bills/', {'filter_type': 'today'}).data['data']

    assert paid['total_items'] == 1
    assert pending['total_items'] == 0
    assert searched['total_items'] == 1
    assert today['total_items'] == 1


def test_bad_custom_date_range(admin_client, bill):
    response = admin_client.get('/api/bills/', {'start_date': '2024-13-01', 'end_date': '2024-12-31'})
    assert response.status_code == 400
