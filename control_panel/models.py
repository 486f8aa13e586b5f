from decimal import Decimal

from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from django.contrib.auth.hashers import make_password, check_password
from web_portal.models import AdminAccount


DEFAULT_EVENT_MARGIN = Decimal('20')


class Panchayath(models.Model):
    name = models.CharField(max_length=150, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'panchayaths'
        ordering = ['name']

    def __str__(self):
        return self.name


class Ward(models.Model):
    panchayath = models.ForeignKey(Panchayath, on_delete=models.CASCADE, related_name='wards')
    ward_number = models.CharField(max_length=10)
    ward_name = models.CharField(max_length=150, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'wards'
        unique_together = ('panchayath', 'ward_number')
        ordering = ['panchayath_id', 'id']

    def __str__(self):
        label = f"Ward {self.ward_number}"
        return f"{label} - {self.ward_name}" if self.ward_name else label


class Stall(models.Model):
    counter_name = models.CharField(max_length=150)
    participant_name = models.CharField(max_length=150)
    mobile = models.CharField(max_length=15, unique=True)
    password = models.CharField(max_length=255, blank=True)
    email = models.EmailField(blank=True)
    registration_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    is_verified = models.BooleanField(default=False)
    panchayath = models.ForeignKey(Panchayath, on_delete=models.SET_NULL, null=True, blank=True, related_name='stalls')
    ward = models.ForeignKey(Ward, on_delete=models.SET_NULL, null=True, blank=True, related_name='stalls')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'stalls'
        ordering = ['counter_name']

    def __str__(self):
        return f"{self.counter_name} ({self.participant_name})"

    @property
    def is_authenticated(self):
        return True

    def set_password(self, raw_password):
        self.password = make_password(raw_password)

    def check_password(self, raw_password):
        if not self.password:
            return False
        return check_password(raw_password, self.password)

    @property
    def registration_fee_paid(self):
        return self.payments.filter(payment_type='participant').exists()


class Product(models.Model):
    stall = models.ForeignKey(Stall, on_delete=models.CASCADE, related_name='products')
    product_name = models.CharField(max_length=200)
    cost_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    selling_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    event_margin = models.DecimalField(
        max_digits=5, decimal_places=2, default=DEFAULT_EVENT_MARGIN,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        ordering = ['stall_id', 'product_name']

    def __str__(self):
        return f"{self.product_name} - {self.selling_price}"


class BillingTransaction(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('paid', 'Paid'),
    ]
    DELIVERY_CHOICES = [
        ('pending', 'Pending'),
        ('delivered', 'Delivered'),
    ]

    stall = models.ForeignKey(Stall, on_delete=models.CASCADE, related_name='bills')
    receipt_number = models.CharField(max_length=30, unique=True)
    serial_number = models.PositiveIntegerField()
    items = models.JSONField(default=list)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending', db_index=True)
    delivery_status = models.CharField(max_length=10, choices=DELIVERY_CHOICES, default='pending', db_index=True)
    customer_name = models.CharField(max_length=150, blank=True, null=True)
    customer_mobile = models.CharField(max_length=15, blank=True, null=True)
    created_by = models.ForeignKey(AdminAccount, on_delete=models.SET_NULL, null=True, blank=True, related_name='bills_created')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'billing_transactions'
        ordering = ['-created_at', '-id']
        unique_together = ('stall', 'serial_number')

    def __str__(self):
        return f"{self.receipt_number} - {self.total}"


class SalesReturn(models.Model):
    bill = models.ForeignKey(BillingTransaction, on_delete=models.CASCADE, related_name='sales_returns')
    stall = models.ForeignKey(Stall, on_delete=models.CASCADE, related_name='sales_returns')
    return_number = models.CharField(max_length=30, unique=True)
    items = models.JSONField(default=list)
    return_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    reason = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(AdminAccount, on_delete=models.SET_NULL, null=True, blank=True, related_name='returns_created')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'sales_returns'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.return_number} - {self.return_amount}"


class Registration(models.Model):
    TYPE_CHOICES = [
        ('stall_counter', 'Stall Counter Registration'),
        ('employment_booking', 'Employment Booking'),
        ('employment_registration', 'Employment Registration'),
    ]

    registration_type = models.CharField(max_length=30, choices=TYPE_CHOICES, db_index=True)
    name = models.CharField(max_length=150)
    category = models.CharField(max_length=100, blank=True, null=True)
    mobile = models.CharField(max_length=15, blank=True, null=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    receipt_number = models.CharField(max_length=30, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'registrations'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.receipt_number} - {self.name}"


class Payment(models.Model):
    TYPE_CHOICES = [
        ('participant', 'Participant Payment'),
        ('other', 'Other Payment'),
    ]

    payment_type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    stall = models.ForeignKey(Stall, on_delete=models.CASCADE, null=True, blank=True, related_name='payments')
    total_billed = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    margin_deducted = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    narration = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(AdminAccount, on_delete=models.SET_NULL, null=True, blank=True, related_name='payments_recorded')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payments'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.payment_type} - {self.amount_paid}"


class StallLoginSession(models.Model):
    stall = models.ForeignKey(Stall, on_delete=models.CASCADE, related_name='sessions')
    token_jti = models.CharField(max_length=64, unique=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    device_info = models.JSONField(default=dict, blank=True)
    login_at = models.DateTimeField(auto_now_add=True)
    logout_at = models.DateTimeField(null=True, blank=True)
    is_logged_out = models.BooleanField(default=False)

    class Meta:
        db_table = 'stall_login_sessions'
        ordering = ['-login_at']

    def __str__(self):
        return f"{self.stall.counter_name} session at {self.login_at}"


class FoodOption(models.Model):
    name = models.CharField(max_length=150)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    is_active = models.BooleanField(default=True)
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'food_options'
        ordering = ['display_order', 'id']

    def __str__(self):
        return f"{self.name} - {self.price}"


class FoodCouponBooking(models.Model):
    panchayath = models.ForeignKey(Panchayath, on_delete=models.PROTECT, related_name='food_bookings')
    food_option = models.ForeignKey(FoodOption, on_delete=models.PROTECT, related_name='bookings')
    name = models.CharField(max_length=150)
    mobile = models.CharField(max_length=15)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, default='pending')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'food_coupon_bookings'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.name} - {self.food_option.name} x {self.quantity}"


class StallEnquiryField(models.Model):
    FIELD_TYPES = [
        ('text', 'Text'),
        ('textarea', 'Textarea'),
        ('number', 'Number'),
        ('radio', 'Radio'),
        ('select', 'Select'),
    ]

    field_label = models.CharField(max_length=255)
    field_type = models.CharField(max_length=20, choices=FIELD_TYPES, default='text')
    options = models.JSONField(null=True, blank=True)
    is_required = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    display_order = models.IntegerField(default=0)
    show_conditional_on = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='dependent_fields')
    conditional_value = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'stall_enquiry_fields'
        ordering = ['display_order', 'id']

    def __str__(self):
        return self.field_label


class StallEnquiry(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('verified', 'Verified'),
    ]

    name = models.CharField(max_length=150)
    mobile = models.CharField(max_length=15, unique=True)
    panchayath = models.ForeignKey(Panchayath, on_delete=models.SET_NULL, null=True, blank=True, related_name='enquiries')
    ward = models.ForeignKey(Ward, on_delete=models.SET_NULL, null=True, blank=True, related_name='enquiries')
    responses = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'stall_enquiries'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.name} ({self.mobile})"
