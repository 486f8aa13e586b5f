"""
Accounting figures derived from raw billing, payment, registration and
sales-return rows.

Every function here is pure: it only folds rows that were already fetched,
never touches the database and never fails on its own. Rows may be model
instances or plain mappings (``queryset.values()``, JSON bill items).
"""
from collections import OrderedDict
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

DEFAULT_ITEM_MARGIN = Decimal('20')
DEFAULT_EVENT_MARGIN = Decimal('20')
ZERO = Decimal('0')
HUNDRED = Decimal('100')


def _field(row, name, default=None):
    if isinstance(row, dict):
        return row.get(name, default)
    return getattr(row, name, default)


def to_decimal(value, default='0'):
    if value is None or value == '':
        return Decimal(default)
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return Decimal(default)


def money(value):
    return to_decimal(value).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def _sum(values):
    return sum((to_decimal(v) for v in values), ZERO)


def bill_items(bill):
    items = _field(bill, 'items') or []
    return items if isinstance(items, list) else []


def item_total(item):
    return to_decimal(_field(item, 'price')) * to_decimal(_field(item, 'quantity'), '1')


def item_margin(item):
    margin = _field(item, 'event_margin')
    if margin in (None, ''):
        return DEFAULT_ITEM_MARGIN
    return to_decimal(margin, str(DEFAULT_ITEM_MARGIN))


def item_commission_balance(item):
    """Amount owed to the stall for one line after the organisers' cut."""
    return item_total(item) * (1 - item_margin(item) / HUNDRED)


def item_commission(item):
    return item_total(item) * item_margin(item) / HUNDRED


def bill_commission_balance(bill):
    return _sum(item_commission_balance(item) for item in bill_items(bill))


def participant_payments(payments, stall_id=None):
    rows = [p for p in payments if _field(p, 'payment_type') == 'participant']
    if stall_id is not None:
        rows = [p for p in rows if _field(p, 'stall_id') == stall_id]
    return rows


def stall_bill_balance(bills, payments):
    """
    Balance still owed to a stall: per-item commission-adjusted totals of all
    its bills minus participant payments already made, floored at zero.
    """
    before_payments = _sum(bill_commission_balance(bill) for bill in bills)
    already_paid = _sum(_field(p, 'amount_paid') for p in participant_payments(payments))
    return max(ZERO, before_payments - already_paid)


def participant_payout(billed_amount, margin_percent=DEFAULT_EVENT_MARGIN):
    """Manual participant payment: returns (deduction, payable)."""
    billed = to_decimal(billed_amount)
    deduction = billed * to_decimal(margin_percent) / HUNDRED
    return deduction, billed - deduction


def paid_bills(bills):
    return [b for b in bills if _field(b, 'status') == 'paid']


def total_collected(bills, payments, registrations):
    return (
        _sum(_field(b, 'total') for b in paid_bills(bills))
        + _sum(_field(p, 'amount_paid') for p in participant_payments(payments))
        + _sum(_field(r, 'amount') for r in registrations)
    )


def total_returns(sales_returns):
    return _sum(_field(r, 'return_amount') for r in sales_returns)


def net_collected(collected, sales_returns):
    return to_decimal(collected) - total_returns(sales_returns)


def registration_totals(registrations):
    totals = OrderedDict(
        (key, ZERO) for key in ('stall_counter', 'employment_booking', 'employment_registration')
    )
    for reg in registrations:
        kind = _field(reg, 'registration_type')
        totals[kind] = totals.get(kind, ZERO) + to_decimal(_field(reg, 'amount'))
    return totals


def accounts_summary(bills, payments, registrations, sales_returns):
    bills = list(bills)
    payments = list(payments)
    registrations = list(registrations)
    sales_returns = list(sales_returns)

    collected = total_collected(bills, payments, registrations)
    returns = total_returns(sales_returns)
    net = net_collected(collected, sales_returns)
    participant_total = _sum(_field(p, 'amount_paid') for p in participant_payments(payments))
    other_total = _sum(_field(p, 'amount_paid') for p in payments if _field(p, 'payment_type') == 'other')
    per_registration = registration_totals(registrations)

    return {
        'stall_billing_total': money(_sum(_field(b, 'total') for b in paid_bills(bills))),
        'pending_billing_total': money(_sum(_field(b, 'total') for b in bills if _field(b, 'status') != 'paid')),
        'stall_registration_total': money(per_registration['stall_counter']),
        'employment_booking_total': money(per_registration['employment_booking']),
        'employment_registration_total': money(per_registration['employment_registration']),
        'participant_payments_total': money(participant_total),
        'other_payments_total': money(other_total),
        'total_collected': money(collected),
        'total_returns': money(returns),
        'net_collected': money(net),
        'total_paid': money(other_total),
        'cash_balance': money(net - other_total),
    }


def stall_sales_summary(bills):
    bills = list(bills)
    total_sales = _sum(_field(b, 'total') for b in bills)
    paid_total = _sum(_field(b, 'total') for b in paid_bills(bills))
    commission = ZERO
    grouped = OrderedDict()

    for bill in bills:
        for item in bill_items(bill):
            commission += item_commission(item)
            name = _field(item, 'name') or 'Unnamed item'
            entry = grouped.setdefault(name, {'name': name, 'quantity': ZERO, 'revenue': ZERO})
            entry['quantity'] += to_decimal(_field(item, 'quantity'), '1')
            entry['revenue'] += item_total(item)

    items_sold = sorted(grouped.values(), key=lambda row: row['revenue'], reverse=True)
    return {
        'bill_count': len(bills),
        'total_sales': money(total_sales),
        'paid_total': money(paid_total),
        'pending_total': money(total_sales - paid_total),
        'commission': money(commission),
        'items_sold': [
            {'name': row['name'], 'quantity': row['quantity'], 'revenue': money(row['revenue'])}
            for row in items_sold
        ],
    }


def stall_dashboard(bills, payments):
    bills = list(bills)
    payments = list(payments)
    balance = stall_bill_balance(bills, payments)
    delivered = [b for b in bills if _field(b, 'delivery_status') == 'delivered']
    return {
        'total_billed_count': len(bills),
        'total_billed_amount': money(_sum(_field(b, 'total') for b in bills)),
        'bill_balance_before_payments': money(_sum(bill_commission_balance(b) for b in bills)),
        'payments_received': money(_sum(_field(p, 'amount_paid') for p in participant_payments(payments))),
        'bill_balance': money(balance),
        'fully_paid': balance == ZERO,
        'pending_orders': len(bills) - len(delivered),
        'delivered_orders': len(delivered),
    }
