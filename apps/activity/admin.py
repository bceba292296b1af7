from django.contrib import admin
from .models import Activity


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    """Read-only view of group activity."""

    list_display = ['type', 'group', 'actor_member', 'amount', 'currency', 'created_at']
    list_filter = ['type', 'created_at']
    search_fields = ['group__name', 'actor_member__name', 'actor_member__user__email']
    raw_id_fields = ['group', 'actor_member', 'expense', 'settlement', 'from_member', 'to_member']
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
