from rest_framework import serializers
from .models import Group, GroupMember
from apps.accounts.models import User
from apps.currency.services import SUPPORTED_CURRENCIES, normalize_currency


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization."""

    class Meta:
        model = User
        fields = ['id', 'email', 'name']
        read_only_fields = fields


class GroupMemberSerializer(serializers.ModelSerializer):
    """Registered or guest member of a group."""

    user = UserMinimalSerializer(read_only=True)
    name = serializers.CharField(source='display_name', read_only=True)
    is_guest = serializers.BooleanField(read_only=True)

    class Meta:
        model = GroupMember
        fields = ['id', 'user', 'name', 'is_guest', 'joined_at']
        read_only_fields = fields


class GroupSerializer(serializers.ModelSerializer):
    """Main serializer for groups."""

    created_by = UserMinimalSerializer(read_only=True)
    members = GroupMemberSerializer(many=True, read_only=True)
    member_count = serializers.SerializerMethodField()
    is_creator = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'description',
            'base_currency',
            'archived',
            'invite_code',
            'created_by',
            'members',
            'member_count',
            'is_creator',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_member_count(self, obj):
        return obj.members.count()

    def get_is_creator(self, obj):
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            return obj.is_creator(request.user)
        return False


class GroupListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    created_by = UserMinimalSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'description',
            'base_currency',
            'archived',
            'created_by',
            'member_count',
            'created_at',
        ]
        read_only_fields = fields

    def get_member_count(self, obj):
        return obj.members.count()


class CurrencyCodeField(serializers.CharField):
    """ISO currency code, upper-cased and checked against the supported list."""

    def __init__(self, **kwargs):
        kwargs.setdefault('max_length', 3)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        code = normalize_currency(super().to_internal_value(data), default='')
        if code not in SUPPORTED_CURRENCIES:
            raise serializers.ValidationError(f'Unsupported currency: {code or data}')
        return code


class GroupCreateSerializer(serializers.Serializer):
    """Input for creating a group."""

    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    base_currency = CurrencyCodeField(required=False)


class GroupUpdateSerializer(serializers.Serializer):
    """Input for partial group updates."""

    name = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    base_currency = CurrencyCodeField(required=False)


class GroupArchiveSerializer(serializers.Serializer):
    archived = serializers.BooleanField(required=True)


class BaseCurrencySerializer(serializers.Serializer):
    base_currency = CurrencyCodeField(required=True)


class GuestMemberSerializer(serializers.Serializer):
    """Input for adding a guest member."""

    name = serializers.CharField(max_length=100)


class JoinGroupSerializer(serializers.Serializer):
    """Serializer for joining a group with invite code."""

    invite_code = serializers.CharField(max_length=16, required=True)


class InviteUserSerializer(serializers.Serializer):
    """Email of a registered user to invite."""

    email = serializers.EmailField()


class PendingInvitationSerializer(serializers.Serializer):
    """Invitation waiting for the invitee to accept or decline."""

    id = serializers.IntegerField()
    email = serializers.EmailField(source='user.email')
    name = serializers.CharField(source='user.get_display_name')
    invited_by = UserMinimalSerializer(source='inviter', allow_null=True, default=None)
    created_at = serializers.DateTimeField()
