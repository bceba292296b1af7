from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Users with the number of groups they belong to."""

    list_display = ['email', 'name', 'is_active', 'group_count', 'created_at', 'last_login']
    list_filter = ['is_active', 'is_staff']
    search_fields = ['email', 'name']
    ordering = ['-created_at']

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Profile', {'fields': ('name', 'avatar_url')}),
        ('Access', {'fields': ('is_active', 'is_staff', 'is_superuser')}),
        ('Dates', {'fields': ('created_at', 'last_login')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'name', 'password1', 'password2'),
        }),
    )
    readonly_fields = ['created_at', 'last_login']
    filter_horizontal = []

    actions = ['deactivate_users']

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(membership_count=Count('group_memberships'))

    @admin.display(description='Groups', ordering='membership_count')
    def group_count(self, obj):
        return obj.membership_count

    @admin.action(description='Deactivate selected users')
    def deactivate_users(self, request, queryset):
        # Superusers stay active so the admin cannot lock itself out
        count = queryset.filter(is_superuser=False).update(is_active=False)
        self.message_user(request, f'Deactivated {count} user(s).')
