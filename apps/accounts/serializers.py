from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Profile of the signed-in user; name and avatar are editable."""

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'avatar_url', 'created_at', 'last_login']
        read_only_fields = ['id', 'email', 'created_at', 'last_login']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name is required')
        return value


class UserRegistrationSerializer(serializers.ModelSerializer):
    """
    Sign-up payload.

    ``invite_code`` is optional; when present the new account joins the
    group it belongs to.
    """

    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(write_only=True, style={'input_type': 'password'})
    name = serializers.CharField(max_length=100)
    invite_code = serializers.CharField(write_only=True, required=False, allow_blank=True, max_length=16)

    class Meta:
        model = User
        fields = ['email', 'password', 'password_confirm', 'name', 'invite_code']

    def validate(self, attrs):
        if attrs['password'] != attrs.pop('password_confirm'):
            raise serializers.ValidationError({'password_confirm': 'Passwords do not match'})
        return attrs


class UserLoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(style={'input_type': 'password'})
    new_password = serializers.CharField(validators=[validate_password], style={'input_type': 'password'})


class JoinedGroupSerializer(serializers.Serializer):
    """Group a new account joined through its invite code."""

    id = serializers.IntegerField(source='group.id')
    name = serializers.CharField(source='group.name')
    member_id = serializers.IntegerField(source='id')


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(help_text="Refresh token to revoke")
