import re
from decimal import Decimal

import pytest

from control_panel.models import Payment, Registration

pytestmark = pytest.mark.django_db


def test_registration_receipt_and_category(admin_client):
    response = admin_client.post('/api/registrations/', {
        'registration_type': 'stall_counter',
        'name': 'Suhara',
        'category': 'ignored',
        'amount': '300',
    }, format='json')

    assert response.status_code == 201, response.data
    assert re.fullmatch(r'REG-\d{8}-0001', response.data['data']['receipt_number'])
    assert response.data['data']['category'] is None

    booking = admin_client.post('/api/registrations/', {
        'registration_type': 'employment_booking',
        'name': 'Vinod',
        'category': 'Driver',
        'mobile': '9988776655',
        'amount': '50',
    }, format='json')
    assert booking.data['data']['category'] == 'Driver'
    assert booking.data['data']['receipt_number'].endswith('-0002')


def test_registration_requires_name_and_amount(admin_client):
    response = admin_client.post('/api/registrations/', {'registration_type': 'stall_counter'}, format='json')

    assert response.status_code == 400
    assert set(response.data['missing']) == {'name', 'amount'}
    assert not Registration.objects.exists()


def test_registration_rejects_bad_mobile(admin_client):
    response = admin_client.post('/api/registrations/', {
        'registration_type': 'employment_registration', 'name': 'Ravi', 'amount': '10', 'mobile': '123',
    }, format='json')
    assert response.status_code == 400


def test_registration_totals_by_type(admin_client):
    for kind, amount in (('stall_counter', '100'), ('stall_counter', '50'), ('employment_registration', '25')):
        admin_client.post('/api/registrations/', {'registration_type': kind, 'name': 'X', 'amount': amount}, format='json')

    data = admin_client.get('/api/registrations/').data['data']

    assert data['total_items'] == 3
    assert data['totals']['stall_counter'] == '150.00'
    assert data['totals']['employment_registration'] == '25.00'


def test_participant_payment_deducts_event_margin(admin_client, stall, settings):
    settings.EVENT_MARGIN_PERCENT = 20
    response = admin_client.post('/api/payments/', {
        'payment_type': 'participant', 'stall_id': stall.id, 'total_billed': '1000',
    }, format='json')

    assert response.status_code == 201, response.data
    payment = Payment.objects.get()
    assert payment.margin_deducted == Decimal('200.00')
    assert payment.amount_paid == Decimal('800.00')
    assert payment.margin_deducted + payment.amount_paid == payment.total_billed


def test_participant_payment_defaults_to_billed_total(admin_client, bill):
    response = admin_client.post('/api/payments/', {
        'payment_type': 'participant', 'stall_id': bill.stall_id,
    }, format='json')

    assert response.status_code == 201
    assert Decimal(response.data['data']['total_billed']) == Decimal('200.00')


def test_default_payout_settles_only_the_outstanding_amount(admin_client, bill):
    payout = {'payment_type': 'participant', 'stall_id': bill.stall_id}

    first = admin_client.post('/api/payments/', payout, format='json')
    assert first.status_code == 201
    assert Decimal(first.data['data']['total_billed']) == Decimal('200.00')

    again = admin_client.post('/api/payments/', payout, format='json')
    assert again.status_code == 400
    assert Payment.objects.filter(payment_type='participant').count() == 1


def test_default_payout_nets_returns_and_ignores_registration_fee(admin_client, bill, stall):
    admin_client.post('/api/stalls/registration-fee/', {'stall_id': stall.id}, format='json')
    admin_client.post('/api/sales-returns/', {'bill_id': bill.id, 'items': [{'name': 'Palada', 'quantity': 1}]}, format='json')

    response = admin_client.post('/api/payments/', {'payment_type': 'participant', 'stall_id': stall.id}, format='json')

    assert response.status_code == 201, response.data
    assert Decimal(response.data['data']['total_billed']) == Decimal('150.00')


def test_other_payment_needs_narration(admin_client):
    missing = admin_client.post('/api/payments/', {'payment_type': 'other', 'amount_paid': '100'}, format='json')
    assert missing.status_code == 400

    response = admin_client.post('/api/payments/', {
        'payment_type': 'other', 'amount_paid': '100', 'narration': 'Sound system',
    }, format='json')
    assert response.status_code == 201
    assert response.data['data']['stall'] is None


def test_unknown_payment_type(admin_client):
    assert admin_client.post('/api/payments/', {'payment_type': 'gift'}, format='json').status_code == 400


def test_accounts_summary_end_to_end(admin_client, bill, stall):
    admin_client.put('/api/bills/mark-paid/', {'bill_id': bill.id}, format='json')
    admin_client.post('/api/sales-returns/', {'bill_id': bill.id, 'items': [{'name': 'Palada', 'quantity': 1}]}, format='json')
    admin_client.post('/api/registrations/', {'registration_type': 'stall_counter', 'name': 'A', 'amount': '100'}, format='json')
    admin_client.post('/api/stalls/registration-fee/', {'stall_id': stall.id}, format='json')
    admin_client.post('/api/payments/', {'payment_type': 'other', 'amount_paid': '30', 'narration': 'Tea'}, format='json')

    data = admin_client.get('/api/accounts/summary/').data['data']

    # 200 paid bill + 500 registration fee + 100 registration
    assert data['total_collected'] == Decimal('800.00')
    assert data['total_returns'] == Decimal('50.00')
    assert data['net_collected'] == Decimal('750.00')
    assert data['total_paid'] == Decimal('30.00')
    assert data['cash_balance'] == Decimal('720.00')
    # 160 owed on the bill, already covered by the 500 participant payment
    assert data['stall_balances'] == [
        {'stall_id': stall.id, 'counter_name': stall.counter_name, 'bill_balance': Decimal('0.00')}
    ]


def test_accounts_summary_refreshes_after_payment(admin_client):
    first = admin_client.get('/api/accounts/summary/').data['data']
    assert first['total_paid'] == Decimal('0.00')

    admin_client.post('/api/payments/', {'payment_type': 'other', 'amount_paid': '45', 'narration': 'Chairs'}, format='json')

    second = admin_client.get('/api/accounts/summary/').data['data']
    assert second['total_paid'] == Decimal('45.00')


def test_delete_payment(admin_client):
    created = admin_client.post('/api/payments/', {
        'payment_type': 'other', 'amount_paid': '10', 'narration': 'Misc',
    }, format='json')

    response = admin_client.delete('/api/payments/', {'payment_id': created.data['data']['id']}, format='json')

    assert response.status_code == 200
    assert not Payment.objects.exists()
