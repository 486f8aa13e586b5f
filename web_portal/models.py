from django.db import models
from django.utils import timezone
from django.contrib.auth.hashers import make_password, check_password


APP_MODULES = [
    ('billing', 'Billing'),
    ('team', 'Team'),
    ('programs', 'Programs'),
    ('accounts', 'Accounts'),
    ('food_court', 'Food Court'),
    ('photos', 'Photo Gallery'),
    ('registrations', 'Registrations'),
    ('survey', 'Survey Management'),
    ('stall_enquiry', 'Stall Enquiry'),
    ('food_coupon', 'Food Coupon'),
]

PERMISSION_ACTIONS = ('read', 'create', 'update', 'delete')


class AdminAccount(models.Model):
    ROLE_CHOICES = [
        ('super_admin', 'Super Admin'),
        ('admin', 'Admin'),
    ]

    username = models.CharField(max_length=150, unique=True)
    password = models.CharField(max_length=255)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='admin')
    is_active = models.BooleanField(default=True, db_index=True)
    created_by = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='admins_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "admins"
        ordering = ['-created_at']
        verbose_name = "Admin Account"

    def __str__(self):
        return f"{self.username} ({self.role})"

    @property
    def is_authenticated(self):
        return True

    @property
    def is_super_admin(self):
        return self.role == 'super_admin'

    def set_password(self, raw_password):
        self.password = make_password(raw_password)

    def check_password(self, raw_password):
        return check_password(raw_password, self.password)


class AdminPermission(models.Model):
    admin = models.ForeignKey(AdminAccount, on_delete=models.CASCADE, related_name='permissions')
    module = models.CharField(max_length=30, choices=APP_MODULES)
    can_read = models.BooleanField(default=False)
    can_create = models.BooleanField(default=False)
    can_update = models.BooleanField(default=False)
    can_delete = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "admin_permissions"
        unique_together = ('admin', 'module')
        ordering = ['module']

    def __str__(self):
        return f"{self.admin.username} - {self.module}"

    def as_matrix_row(self):
        return {
            'module': self.module,
            'can_read': self.can_read,
            'can_create': self.can_create,
            'can_update': self.can_update,
            'can_delete': self.can_delete,
        }


class AdminLoginSession(models.Model):
    admin = models.ForeignKey(AdminAccount, on_delete=models.CASCADE, related_name='sessions')
    token_jti = models.CharField(max_length=64, unique=True)
    permission_snapshot = models.JSONField(default=list, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(null=True, blank=True)
    device_info = models.JSONField(default=dict, blank=True)
    login_at = models.DateTimeField(auto_now_add=True, db_index=True)
    logout_at = models.DateTimeField(null=True, blank=True)
    is_logged_out = models.BooleanField(default=False)

    class Meta:
        db_table = "admin_login_sessions"
        ordering = ['-login_at']

    def __str__(self):
        return f"{self.admin.username} session at {self.login_at}"

    def is_super_admin(self):
        return self.admin.is_super_admin

    def has_permission(self, module, action):
        if self.admin.is_super_admin:
            return True
        if action not in PERMISSION_ACTIONS:
            return False
        for row in self.permission_snapshot or []:
            if row.get('module') == module:
                return bool(row.get(f'can_{action}', False))
        return False

    def accessible_modules(self):
        return [key for key, _ in APP_MODULES if self.has_permission(key, 'read')]

    def permission_matrix(self):
        return [
            {
                'module': key,
                'label': label,
                **{f'can_{action}': self.has_permission(key, action) for action in PERMISSION_ACTIONS},
            }
            for key, label in APP_MODULES
        ]

    def end(self):
        self.is_logged_out = True
        self.logout_at = timezone.now()
        self.save(update_fields=['is_logged_out', 'logout_at'])


class AdminActivityLog(models.Model):
    user = models.ForeignKey(AdminAccount, on_delete=models.SET_NULL, null=True, blank=True, related_name='activities')
    action = models.CharField(max_length=100, db_index=True)
    description = models.TextField()
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)
    request_data = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = "admin_activity_log"
        ordering = ['-timestamp']
        verbose_name = "Admin Activity Log"

    def __str__(self):
        return f"{self.user} - {self.action} - {self.timestamp.strftime('%d %b %Y %I:%M %p')}"


class Program(models.Model):
    name = models.CharField(max_length=200)
    date = models.DateField()
    time = models.TimeField()
    venue = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "programs"
        ordering = ['date', 'time']

    def __str__(self):
        return f"{self.name} @ {self.venue}"


class TeamMember(models.Model):
    MEMBER_TYPES = [
        ('official', 'Official'),
        ('volunteer', 'Volunteer'),
    ]

    name = models.CharField(max_length=150)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=15, blank=True)
    role = models.CharField(max_length=100)
    member_type = models.CharField(max_length=20, choices=MEMBER_TYPES, default='official')
    shift = models.CharField(max_length=100, blank=True)
    duties = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "team_members"
        ordering = ['member_type', 'name']

    def __str__(self):
        return f"{self.name} ({self.role})"
