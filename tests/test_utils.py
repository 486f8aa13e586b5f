import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone

from utils.Api.collection_cache import collection_key, get_or_fetch, invalidate
from utils.excel_files.export_excel import flatten_responses
from utils.helpers import generate_receipt_number
from utils.log_file.log import make_serializable
from validation.superadmin_validation import add_serial_numbers, is_positive_integer, parse_amount
from control_panel.models import Registration


def test_passwords_are_masked_and_files_summarised():
    upload = SimpleUploadedFile('photo.png', b'x')
    cleaned = make_serializable({'username': 'root', 'password': 'secret', 'photo': upload, 'nested': [{'verification_password': 'p'}]})

    assert cleaned['password'] == '*****'
    assert cleaned['nested'][0]['verification_password'] == '*****'
    assert cleaned['photo'] == {'file_name': 'photo.png', 'type_hint': 'DjangoUploadedFile'}


def test_collection_key():
    assert collection_key('bills') == 'bills:all'
    assert collection_key('bills', 'stall', 7) == 'bills:stall:7'


def test_invalidate_drops_dependent_collections():
    calls = []

    def fetch():
        calls.append(1)
        return ['row']

    get_or_fetch('sales_summary', fetch, 'stall', 3)
    get_or_fetch('sales_summary', fetch, 'stall', 3)
    assert len(calls) == 1

    dropped = invalidate('bills')
    assert {'bills', 'sales_returns', 'sales_summary', 'accounts'} <= dropped

    get_or_fetch('sales_summary', fetch, 'stall', 3)
    assert len(calls) == 2


def test_scoped_invalidation_keeps_other_scopes():
    get_or_fetch('wards', lambda: ['a'], 'panchayath', 1)
    get_or_fetch('wards', lambda: ['b'], 'panchayath', 2)

    invalidate('wards', scope=('panchayath', 1))

    assert get_or_fetch('wards', lambda: ['fresh'], 'panchayath', 1) == ['fresh']
    assert get_or_fetch('wards', lambda: ['fresh'], 'panchayath', 2) == ['b']


def test_serial_numbers_descend_across_pages():
    rows = [{'id': n} for n in range(1, 6)]

    page = add_serial_numbers(rows, page=2, page_size=2)

    assert [r['sr_no'] for r in page['results']] == [3, 2]
    assert page['total_pages'] == 3
    assert 'sr_no' not in rows[2]


def test_validators():
    assert is_positive_integer('12')
    assert not is_positive_integer(True)
    assert not is_positive_integer('0')
    assert parse_amount('10.5') is not None
    assert parse_amount('0', allow_zero=False) is None
    assert parse_amount('-1') is None
    assert parse_amount('abc') is None


def test_flatten_responses_uses_labels():
    flat = flatten_responses({'1': 'Veg', '2': ['A', 'B']}, {1: 'Food type', 2: 'Days', 3: 'Notes'})

    assert flat == {'Food type': 'Veg', 'Days': 'A, B', 'Notes': ''}


@pytest.mark.django_db
def test_receipt_counter_continues_past_four_digits():
    stem = f"REG-{timezone.localdate().strftime('%Y%m%d')}-"
    for number in ('9999', '10000'):
        Registration.objects.create(registration_type='stall_counter', name='Walk-in', amount=10, receipt_number=stem + number)

    assert generate_receipt_number('REG', Registration) == f'{stem}10001'
