import math
from decimal import Decimal

from rest_framework import serializers
from control_panel.models import *
from utils.helpers import validate_mobile_format


class MobileNumberField(serializers.CharField):
    default_error_messages = {'invalid_mobile': 'Mobile number must be exactly 10 digits.'}

    def to_internal_value(self, data):
        value = super().to_internal_value(data).strip()
        if value and not validate_mobile_format(value):
            self.fail('invalid_mobile')
        return value


def suggested_mrp(cost_price, margin=DEFAULT_EVENT_MARGIN):
    """Selling price that keeps the event margin on top of cost, rounded up."""
    raw = Decimal(str(cost_price)) * (1 + Decimal(str(margin)) / 100)
    return Decimal(math.ceil(raw))


class PanchayathSerializer(serializers.ModelSerializer):
    ward_count = serializers.SerializerMethodField()

    class Meta:
        model = Panchayath
        fields = ['id', 'name', 'ward_count', 'created_at']
        read_only_fields = ('created_at',)

    def get_ward_count(self, obj):
        annotated = getattr(obj, 'num_wards', None)
        return annotated if annotated is not None else obj.wards.count()


class WardSerializer(serializers.ModelSerializer):
    panchayath_name = serializers.CharField(source='panchayath.name', read_only=True)

    class Meta:
        model = Ward
        fields = ['id', 'panchayath', 'panchayath_name', 'ward_number', 'ward_name', 'created_at']
        read_only_fields = ('panchayath', 'created_at')


class StallSerializer(serializers.ModelSerializer):
    mobile = MobileNumberField(max_length=15)
    password = serializers.CharField(write_only=True, required=False, allow_blank=True, min_length=4)
    registration_fee_paid = serializers.SerializerMethodField()
    panchayath_name = serializers.CharField(source='panchayath.name', read_only=True, default=None)

    class Meta:
        model = Stall
        fields = [
            'id', 'counter_name', 'participant_name', 'mobile', 'password', 'email',
            'registration_fee', 'registration_fee_paid', 'is_verified',
            'panchayath', 'panchayath_name', 'ward', 'created_at', 'updated_at',
        ]
        read_only_fields = ('is_verified', 'created_at', 'updated_at')

    def get_registration_fee_paid(self, obj):
        paid_ids = self.context.get('paid_stall_ids')
        if paid_ids is not None:
            return obj.id in paid_ids
        return obj.registration_fee_paid

    def validate_mobile(self, value):
        duplicate = Stall.objects.filter(mobile=value)
        if self.instance:
            duplicate = duplicate.exclude(id=self.instance.id)
        if duplicate.exists():
            raise serializers.ValidationError("A stall with this mobile number already exists.")
        return value

    def validate(self, attrs):
        panchayath = attrs.get('panchayath', getattr(self.instance, 'panchayath', None))
        ward = attrs.get('ward', getattr(self.instance, 'ward', None))
        if ward and panchayath and ward.panchayath_id != panchayath.id:
            raise serializers.ValidationError({'ward': "Ward does not belong to the selected panchayath."})
        return attrs

    def create(self, validated_data):
        password = validated_data.pop('password', '')
        stall = Stall(**validated_data)
        if password:
            stall.set_password(password)
        stall.save()
        return stall

    def update(self, instance, validated_data):
        password = validated_data.pop('password', '')
        for key, value in validated_data.items():
            setattr(instance, key, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class ProductSerializer(serializers.ModelSerializer):
    counter_name = serializers.CharField(source='stall.counter_name', read_only=True)
    selling_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False)

    class Meta:
        model = Product
        fields = [
            'id', 'stall', 'counter_name', 'product_name', 'cost_price', 'selling_price',
            'event_margin', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ('created_at', 'updated_at')

    def validate(self, attrs):
        if self.instance is None and attrs.get('selling_price') is None:
            margin = attrs.get('event_margin', DEFAULT_EVENT_MARGIN)
            attrs['selling_price'] = suggested_mrp(attrs['cost_price'], margin)
        return attrs


class BillingTransactionSerializer(serializers.ModelSerializer):
    counter_name = serializers.CharField(source='stall.counter_name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)
    returned_amount = serializers.SerializerMethodField()

    class Meta:
        model = BillingTransaction
        fields = [
            'id', 'stall', 'counter_name', 'receipt_number', 'serial_number', 'items',
            'subtotal', 'total', 'status', 'delivery_status', 'customer_name', 'customer_mobile',
            'returned_amount', 'created_by_username', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_returned_amount(self, obj):
        return str(sum((r.return_amount for r in obj.sales_returns.all()), Decimal('0.00')))


class BillItemInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False)


class BillCreateSerializer(serializers.Serializer):
    stall_id = serializers.IntegerField(min_value=1)
    items = BillItemInputSerializer(many=True, allow_empty=False)
    customer_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    customer_mobile = MobileNumberField(max_length=15, required=False, allow_blank=True)


class BillEditSerializer(serializers.Serializer):
    bill_id = serializers.IntegerField(min_value=1)
    verification_password = serializers.CharField(write_only=True, required=False)
    customer_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    customer_mobile = MobileNumberField(max_length=15, required=False, allow_blank=True)
    total = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False)


class SalesReturnSerializer(serializers.ModelSerializer):
    receipt_number = serializers.CharField(source='bill.receipt_number', read_only=True)
    counter_name = serializers.CharField(source='stall.counter_name', read_only=True)

    class Meta:
        model = SalesReturn
        fields = [
            'id', 'bill', 'receipt_number', 'stall', 'counter_name', 'return_number',
            'items', 'return_amount', 'reason', 'created_at',
        ]
        read_only_fields = fields


class ReturnItemInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    quantity = serializers.IntegerField(min_value=0)


class SalesReturnCreateSerializer(serializers.Serializer):
    bill_id = serializers.IntegerField(min_value=1)
    items = ReturnItemInputSerializer(many=True, allow_empty=False)
    reason = serializers.CharField(required=False, allow_blank=True)


class RegistrationSerializer(serializers.ModelSerializer):
    mobile = MobileNumberField(max_length=15, required=False, allow_blank=True, allow_null=True)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))

    class Meta:
        model = Registration
        fields = ['id', 'registration_type', 'name', 'category', 'mobile', 'amount', 'receipt_number', 'created_at']
        read_only_fields = ('receipt_number', 'created_at')

    def validate(self, attrs):
        if attrs.get('registration_type') != 'employment_booking':
            attrs['category'] = None
        return attrs


class PaymentSerializer(serializers.ModelSerializer):
    counter_name = serializers.CharField(source='stall.counter_name', read_only=True, default=None)

    class Meta:
        model = Payment
        fields = [
            'id', 'payment_type', 'stall', 'counter_name', 'total_billed', 'margin_deducted',
            'amount_paid', 'narration', 'created_at',
        ]
        read_only_fields = fields


class FoodOptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = FoodOption
        fields = ['id', 'name', 'price', 'is_active', 'display_order', 'created_at']
        read_only_fields = ('created_at',)


class FoodCouponBookingSerializer(serializers.ModelSerializer):
    panchayath_name = serializers.CharField(source='panchayath.name', read_only=True)
    food_option_name = serializers.CharField(source='food_option.name', read_only=True)
    unit_price = serializers.DecimalField(source='food_option.price', max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = FoodCouponBooking
        fields = [
            'id', 'panchayath', 'panchayath_name', 'food_option', 'food_option_name', 'unit_price',
            'name', 'mobile', 'quantity', 'total_amount', 'status', 'created_at',
        ]
        read_only_fields = fields


class StallEnquiryFieldSerializer(serializers.ModelSerializer):
    class Meta:
        model = StallEnquiryField
        fields = [
            'id', 'field_label', 'field_type', 'options', 'is_required', 'is_active',
            'display_order', 'show_conditional_on', 'conditional_value', 'created_at',
        ]
        read_only_fields = ('created_at',)

    def validate_options(self, value):
        if value in (None, ''):
            return None
        if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
            raise serializers.ValidationError("Options must be a list of non-empty strings.")
        return [v.strip() for v in value]

    def validate(self, attrs):
        field_type = attrs.get('field_type', getattr(self.instance, 'field_type', 'text'))
        options = attrs.get('options', getattr(self.instance, 'options', None))
        if field_type in ('radio', 'select') and not options:
            raise serializers.ValidationError({'options': "Radio and select fields need at least one option."})
        if field_type not in ('radio', 'select'):
            attrs['options'] = None

        parent = attrs.get('show_conditional_on', getattr(self.instance, 'show_conditional_on', None))
        if parent is not None and self.instance is not None and parent.id == self.instance.id:
            raise serializers.ValidationError({'show_conditional_on': "A field cannot depend on itself."})
        if parent is None:
            attrs['conditional_value'] = None
        return attrs


class StallEnquirySerializer(serializers.ModelSerializer):
    panchayath_name = serializers.CharField(source='panchayath.name', read_only=True, default=None)
    ward_label = serializers.SerializerMethodField()

    class Meta:
        model = StallEnquiry
        fields = [
            'id', 'name', 'mobile', 'panchayath', 'panchayath_name', 'ward', 'ward_label',
            'responses', 'status', 'created_at',
        ]
        read_only_fields = fields

    def get_ward_label(self, obj):
        return str(obj.ward) if obj.ward_id else None
