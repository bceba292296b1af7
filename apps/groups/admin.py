from django.contrib import admin
from apps.groups.models import Group, GroupMember


class GroupMemberInline(admin.TabularInline):
    """Inline admin for group members."""
    model = GroupMember
    extra = 0
    fields = ['user', 'name', 'joined_at']
    readonly_fields = ['joined_at']


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    """Admin interface for Groups."""

    list_display = [
        'name',
        'created_by',
        'base_currency',
        'member_count',
        'archived',
        'created_at'
    ]
    list_filter = ['archived', 'base_currency', 'created_at']
    search_fields = ['name', 'description', 'created_by__email', 'invite_code']
    readonly_fields = ['invite_code', 'created_at', 'updated_at']
    inlines = [GroupMemberInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'description', 'created_by', 'base_currency', 'archived')
        }),
        ('Invitation', {
            'fields': ('invite_code',)
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def member_count(self, obj):
        """Show number of members."""
        return obj.members.count()
    member_count.short_description = 'Members'


@admin.register(GroupMember)
class GroupMemberAdmin(admin.ModelAdmin):
    list_display = ['__str__', 'group', 'user', 'is_guest', 'joined_at']
    list_filter = ['joined_at']
    search_fields = ['name', 'user__email', 'user__name', 'group__name']
    raw_id_fields = ['group', 'user']

    @admin.display(boolean=True, description='Guest')
    def is_guest(self, obj):
        return obj.user_id is None
