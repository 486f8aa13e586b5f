import os

import pytest
from openpyxl import load_workbook

from control_panel.APIs.stall_enquiry.enquiry import (
    MSG_DUPLICATE_MOBILE, MSG_INVALID_MOBILE, MSG_NAME_REQUIRED, MSG_SUBMITTED, MSG_WARD_REQUIRED,
)
from control_panel.models import Panchayath, StallEnquiry, StallEnquiryField, Ward

pytestmark = pytest.mark.django_db


@pytest.fixture
def fields(db):
    food_type = StallEnquiryField.objects.create(
        field_label='Food type', field_type='radio', options=['Veg', 'Non-veg'],
        is_required=True, display_order=1,
    )
    license_no = StallEnquiryField.objects.create(
        field_label='FSSAI number', field_type='text', is_required=True, display_order=2,
        show_conditional_on=food_type, conditional_value='Non-veg',
    )
    return food_type, license_no


def product_row(**overrides):
    row = {
        'product_name': 'Chicken roll',
        'cost_price': '30',
        'selling_price': '45',
        'selling_unit': 'piece',
        'has_brand': False,
    }
    row.update(overrides)
    return row


def submit(client, panchayath, responses=None, products=None, **overrides):
    payload = {
        'name': 'Fathima',
        'mobile': '9847012345',
        'panchayath_id': panchayath.id,
        'ward_id': panchayath.wards.first().id,
        'responses': responses or {},
        'products': [product_row()] if products is None else products,
    }
    payload.update(overrides)
    return client.post('/api/public/stall-enquiries/', payload, format='json')


def test_submit_enquiry(api_client, panchayath, fields):
    food_type, _ = fields

    response = submit(api_client, panchayath, responses={str(food_type.id): 'Veg'})

    assert response.status_code == 201, response.data
    assert response.data['message'] == MSG_SUBMITTED
    enquiry = StallEnquiry.objects.get()
    assert enquiry.status == 'pending'
    assert enquiry.responses[str(food_type.id)] == 'Veg'
    assert enquiry.responses['products'][0]['product_name'] == 'Chicken roll'
    assert enquiry.responses['products'][0]['brand_name'] is None


def test_conditional_field_is_required_only_when_shown(api_client, panchayath, fields):
    food_type, license_no = fields

    hidden = submit(api_client, panchayath, responses={str(food_type.id): 'Veg'})
    assert hidden.status_code == 201

    shown = submit(api_client, panchayath, responses={str(food_type.id): 'Non-veg'}, mobile='9847000000')
    assert shown.status_code == 400
    assert shown.data['message'] == 'FSSAI number നൽകുക'


def test_required_field_missing(api_client, panchayath, fields):
    response = submit(api_client, panchayath, responses={})

    assert response.status_code == 400
    assert response.data['message'] == 'Food type നൽകുക'


@pytest.mark.parametrize('overrides, message', [
    ({'name': '  '}, MSG_NAME_REQUIRED),
    ({'mobile': '98470'}, MSG_INVALID_MOBILE),
    ({'ward_id': None}, MSG_WARD_REQUIRED),
])
def test_basic_validation(api_client, panchayath, overrides, message):
    response = submit(api_client, panchayath, **overrides)

    assert response.status_code == 400
    assert response.data['message'] == message


@pytest.mark.parametrize('mobile, stored', [
    ('09847012345', '09847012345'),
    ('+91 98470 12346', '919847012346'),
])
def test_longer_mobile_numbers_are_accepted(api_client, panchayath, mobile, stored):
    response = submit(api_client, panchayath, mobile=mobile)

    assert response.status_code == 201, response.data
    assert StallEnquiry.objects.get().mobile == stored


def test_ward_from_another_panchayath(api_client, panchayath):
    other = Panchayath.objects.create(name='Other')
    foreign = Ward.objects.create(panchayath=other, ward_number='1')

    response = submit(api_client, panchayath, ward_id=foreign.id)

    assert response.status_code == 400
    assert response.data['message'] == MSG_WARD_REQUIRED


def test_products_are_required_and_numbered(api_client, panchayath):
    no_products = submit(api_client, panchayath, products=[])
    assert no_products.data['message'] == 'ഉൽപ്പന്നം 1: ഉൽപ്പന്നത്തിന്റെ പേര് നൽകുക'

    second_bad = submit(api_client, panchayath, products=[product_row(), product_row(selling_unit='')])
    assert second_bad.status_code == 400
    assert second_bad.data['message'] == 'ഉൽപ്പന്നം 2: വിൽക്കുന്ന രീതി തിരഞ്ഞെടുക്കുക'


def test_brand_name_kept_only_with_brand(api_client, panchayath):
    submit(api_client, panchayath, products=[product_row(has_brand=True, brand_name='Amma Foods')])

    product = StallEnquiry.objects.get().responses['products'][0]
    assert product['has_brand'] is True
    assert product['brand_name'] == 'Amma Foods'


def test_duplicate_mobile_is_rejected(api_client, panchayath):
    assert submit(api_client, panchayath).status_code == 201

    again = submit(api_client, panchayath, name='Someone else')

    assert again.status_code == 409
    assert again.data['message'] == MSG_DUPLICATE_MOBILE
    assert StallEnquiry.objects.count() == 1


def test_public_fields_exclude_inactive(api_client, fields):
    food_type, license_no = fields
    license_no.is_active = False
    license_no.save()

    rows = api_client.get('/api/public/stall-enquiry-fields/').data['data']

    assert [r['id'] for r in rows] == [food_type.id]


def test_field_management(admin_client):
    created = admin_client.post('/api/stall-enquiry-fields/', {
        'field_label': 'Stall size', 'field_type': 'select', 'options': ['Small', 'Large'],
    }, format='json')
    assert created.status_code == 201, created.data
    assert created.data['data']['display_order'] == 1

    no_options = admin_client.post('/api/stall-enquiry-fields/', {
        'field_label': 'Power', 'field_type': 'radio',
    }, format='json')
    assert no_options.status_code == 400

    text = admin_client.post('/api/stall-enquiry-fields/', {
        'field_label': 'Notes', 'field_type': 'textarea', 'options': ['dropped'],
    }, format='json')
    assert text.data['data']['options'] is None
    assert text.data['data']['display_order'] == 2

    self_reference = admin_client.put('/api/stall-enquiry-fields/', {
        'field_id': text.data['data']['id'], 'show_conditional_on': text.data['data']['id'],
    }, format='json')
    assert self_reference.status_code == 400


def test_reorder_fields(admin_client, fields):
    food_type, license_no = fields

    response = admin_client.put('/api/stall-enquiry-fields/reorder/', {'order': [license_no.id, food_type.id]}, format='json')

    assert response.status_code == 200
    assert [r['id'] for r in response.data['data']] == [license_no.id, food_type.id]

    unknown = admin_client.put('/api/stall-enquiry-fields/reorder/', {'order': [9999]}, format='json')
    assert unknown.status_code == 404


def test_verify_and_restore_enquiry(admin_client, api_client, panchayath):
    submit(api_client, panchayath)
    enquiry = StallEnquiry.objects.get()

    verified = admin_client.put('/api/stall-enquiries/verify/', {'enquiry_id': enquiry.id, 'action': 'verify'}, format='json')
    assert verified.data['data']['status'] == 'verified'

    listed = admin_client.get('/api/stall-enquiries/', {'status': 'verified'}).data['data']
    assert listed['total_items'] == 1
    assert listed['counts'] == {'total': 1, 'pending': 0, 'verified': 1}

    restored = admin_client.put('/api/stall-enquiries/verify/', {'enquiry_id': enquiry.id, 'action': 'unverify'}, format='json')
    assert restored.data['data']['status'] == 'pending'


def test_delete_enquiry(admin_client, api_client, panchayath):
    submit(api_client, panchayath)
    enquiry = StallEnquiry.objects.get()

    assert admin_client.delete('/api/stall-enquiries/', {'enquiry_id': enquiry.id}, format='json').status_code == 200
    assert not StallEnquiry.objects.exists()


def test_export_flattens_answers_and_products(admin_client, api_client, panchayath, fields, settings):
    food_type, _ = fields
    submit(api_client, panchayath, responses={str(food_type.id): 'Veg'})

    response = admin_client.get('/api/stall-enquiries/export/')

    assert response.status_code == 200, response.data
    downloads = os.path.join(settings.MEDIA_ROOT, 'downloads')
    [filename] = os.listdir(downloads)
    sheet = load_workbook(os.path.join(downloads, filename)).active
    headers = [cell.value for cell in sheet[1]]
    assert 'Food type' in headers
    assert headers[-1] == 'Products'
    row = [cell.value for cell in sheet[2]]
    assert row[headers.index('Food type')] == 'Veg'
    assert 'Chicken roll' in row[-1]
