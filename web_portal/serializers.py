from rest_framework import serializers
from .models import *
from utils.helpers import validate_mobile_format


class AdminLoginSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150, trim_whitespace=True)
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})


class AdminAccountSerializer(serializers.ModelSerializer):
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = AdminAccount
        fields = ['id', 'username', 'role', 'is_active', 'created_by_username', 'created_at', 'updated_at']
        read_only_fields = fields


class AdminCreateSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(min_length=6, write_only=True)
    role = serializers.ChoiceField(choices=AdminAccount.ROLE_CHOICES, default='admin')
    is_active = serializers.BooleanField(default=True)

    def validate_username(self, value):
        value = value.strip()
        if AdminAccount.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("An admin with this username already exists.")
        return value


class PermissionRowSerializer(serializers.Serializer):
    module = serializers.ChoiceField(choices=APP_MODULES)
    can_read = serializers.BooleanField(default=False)
    can_create = serializers.BooleanField(default=False)
    can_update = serializers.BooleanField(default=False)
    can_delete = serializers.BooleanField(default=False)


class ProgramSerializer(serializers.ModelSerializer):
    class Meta:
        model = Program
        fields = ['id', 'name', 'date', 'time', 'venue', 'description', 'created_at', 'updated_at']
        read_only_fields = ('created_at', 'updated_at')


class TeamMemberSerializer(serializers.ModelSerializer):
    class Meta:
        model = TeamMember
        fields = ['id', 'name', 'email', 'phone', 'role', 'member_type', 'shift', 'duties', 'created_at']
        read_only_fields = ('created_at',)

    def validate_phone(self, value):
        value = (value or '').strip()
        if value and not validate_mobile_format(value):
            raise serializers.ValidationError("Phone number must be exactly 10 digits.")
        return value
