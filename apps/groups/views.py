from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema
from django.db.models import Prefetch

from .models import Group, GroupMember
from .serializers import (
    GroupSerializer,
    GroupCreateSerializer,
    GroupUpdateSerializer,
    GroupListSerializer,
    GroupMemberSerializer,
    GroupArchiveSerializer,
    BaseCurrencySerializer,
    GuestMemberSerializer,
    JoinGroupSerializer,
    InviteUserSerializer,
    PendingInvitationSerializer,
)
from .permissions import IsGroupCreator

from apps.groups.services import (
    create_group,
    update_group,
    set_group_archived,
    set_base_currency,
    delete_group,
    join_group,
    get_group_members,
    add_guest_member,
    remove_guest_member,
    regenerate_invite_code,
    invite_user_to_group,
    get_pending_invitations,
    cancel_invitation,
    # Exceptions
    GroupNotFoundError,
    InvalidInviteCodeError,
    AlreadyMemberError,
    MemberNotFoundError,
    CannotRemoveRegisteredMemberError,
    InvitedUserNotFoundError,
    AlreadyInvitedError,
    InvitationNotFoundError,
)


class GroupPagination(PageNumberPagination):
    """Custom pagination for groups."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class GroupViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Group CRUD operations.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get all groups (user is member of)
    create: Create a new group
    retrieve: Get a specific group with its members
    partial_update: Update name, description or base currency (creator only)
    destroy: Delete a group (creator only)
    """

    serializer_class = GroupSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = GroupPagination
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        """Return only groups where user is a member."""
        return (
            Group.objects
            .filter(members__user=self.request.user)
            .select_related('created_by')
            .prefetch_related(
                Prefetch('members', queryset=GroupMember.objects.select_related('user'))
            )
            .distinct()
        )

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return GroupListSerializer
        elif self.action == 'create':
            return GroupCreateSerializer
        elif self.action == 'partial_update':
            return GroupUpdateSerializer
        return GroupSerializer

    def get_permissions(self):
        """Set permissions based on action."""
        if self.action in ['partial_update', 'destroy', 'archive', 'currency', 'regenerate_invite']:
            return [IsAuthenticated(), IsGroupCreator()]
        return [IsAuthenticated()]

    def _group_response(self, group, status_code=status.HTTP_200_OK):
        group = self.get_queryset().get(pk=group.pk)
        serializer = GroupSerializer(group, context={'request': self.request})
        return Response(serializer.data, status=status_code)

    def create(self, request, *args, **kwargs):
        """Create a new group."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        group = create_group(created_by=request.user, **serializer.validated_data)

        return self._group_response(group, status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        """Update group settings."""
        group = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        group = update_group(group_id=group.id, user=request.user, **serializer.validated_data)

        return self._group_response(group)

    def destroy(self, request, *args, **kwargs):
        """Delete a group and everything recorded in it."""
        group = self.get_object()
        delete_group(group_id=group.id, user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=GroupArchiveSerializer, responses={200: GroupSerializer})
    @action(detail=True, methods=['patch'])
    def archive(self, request, pk=None):
        """Archive or unarchive the group (creator only)."""
        group = self.get_object()
        serializer = GroupArchiveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        group = set_group_archived(
            group_id=group.id,
            user=request.user,
            archived=serializer.validated_data['archived'],
        )
        return self._group_response(group)

    @extend_schema(request=BaseCurrencySerializer, responses={200: GroupSerializer})
    @action(detail=True, methods=['patch'])
    def currency(self, request, pk=None):
        """Change the group's base currency (creator only)."""
        group = self.get_object()
        serializer = BaseCurrencySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        group = set_base_currency(
            group_id=group.id,
            user=request.user,
            base_currency=serializer.validated_data['base_currency'],
        )
        return self._group_response(group)

    @extend_schema(
        methods=['GET'],
        responses={200: GroupMemberSerializer(many=True)},
    )
    @extend_schema(
        methods=['POST'],
        request=GuestMemberSerializer,
        responses={201: GroupMemberSerializer},
    )
    @action(detail=True, methods=['get', 'post'])
    def members(self, request, pk=None):
        """List members, or add a guest member."""
        group = self.get_object()

        if request.method == 'GET':
            members = get_group_members(group_id=group.id)
            return Response(GroupMemberSerializer(members, many=True).data)

        serializer = GuestMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            member = add_guest_member(
                group_id=group.id,
                user=request.user,
                name=serializer.validated_data['name'],
            )
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(GroupMemberSerializer(member).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=['delete'],
        url_path=r'members/(?P<member_id>\d+)',
        url_name='member-detail',
    )
    def remove_member(self, request, pk=None, member_id=None):
        """Remove a guest member."""
        group = self.get_object()

        try:
            remove_guest_member(group_id=group.id, member_id=member_id, user=request.user)
        except MemberNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except CannotRemoveRegisteredMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=JoinGroupSerializer, responses={201: GroupMemberSerializer})
    @action(detail=True, methods=['post'])
    def join(self, request, pk=None):
        """Join a group using its invite code."""
        serializer = JoinGroupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            member = join_group(
                group_id=pk,
                user=request.user,
                invite_code=serializer.validated_data['invite_code'],
            )
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (InvalidInviteCodeError, AlreadyMemberError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(GroupMemberSerializer(member).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def regenerate_invite(self, request, pk=None):
        """Regenerate invite code (creator only)."""
        group = self.get_object()
        new_code = regenerate_invite_code(group_id=group.id, user=request.user)
        return Response({
            'invite_code': new_code,
            'message': 'Invite code regenerated successfully'
        })

    @extend_schema(request=InviteUserSerializer, responses={201: PendingInvitationSerializer})
    @action(detail=True, methods=['post'])
    def invite(self, request, pk=None):
        """Invite a registered user by email; they join by accepting."""
        group = self.get_object()
        serializer = InviteUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            invitation = invite_user_to_group(
                group_id=group.id,
                user=request.user,
                email=serializer.validated_data['email'],
            )
        except InvitedUserNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (AlreadyMemberError, AlreadyInvitedError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        invitation.inviter = request.user
        return Response(PendingInvitationSerializer(invitation).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: PendingInvitationSerializer(many=True)})
    @action(detail=True, methods=['get'])
    def invitations(self, request, pk=None):
        """Pending invitations of the group."""
        group = self.get_object()
        invitations = get_pending_invitations(group_id=group.id, user=request.user)
        return Response(PendingInvitationSerializer(invitations, many=True).data)

    @action(
        detail=True,
        methods=['delete'],
        url_path=r'invitations/(?P<invitation_id>\d+)',
        url_name='invitation-detail',
    )
    def withdraw_invitation(self, request, pk=None, invitation_id=None):
        """Withdraw a pending invitation."""
        group = self.get_object()

        try:
            cancel_invitation(group_id=group.id, invitation_id=invitation_id, user=request.user)
        except InvitationNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(status=status.HTTP_204_NO_CONTENT)
