"""
Authentication Admin
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .forms import CustomUserCreationForm, CustomUserChangeForm
from .models import ApiKey, ApiKeyRotation, Invitation, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    add_form = CustomUserCreationForm
    form = CustomUserChangeForm
    list_display = ['username', 'email', 'role', 'is_active', 'require_password_change', 'last_login']
    list_filter = ['role', 'is_active', 'is_staff', 'is_superuser', 'require_password_change']
    search_fields = ['username', 'email']
    ordering = ['username']

    fieldsets = (
        (None, {'fields': ('username', 'email', 'password')}),
        ('Permissions', {'fields': ('role', 'is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Security', {'fields': ('require_password_change', 'password_changed_at')}),
        ('Important dates', {'fields': ('last_login', 'date_joined')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'email', 'role', 'password1', 'password2'),
        }),
    )
    readonly_fields = ['password_changed_at', 'last_login', 'date_joined']


@admin.register(Invitation)
class InvitationAdmin(admin.ModelAdmin):
    list_display = ['email', 'first_name', 'last_name', 'intended_role', 'status', 'expires_at', 'invited_by']
    list_filter = ['status', 'intended_role']
    search_fields = ['email', 'first_name', 'last_name']
    raw_id_fields = ['employee', 'invited_by']
    readonly_fields = ['token', 'registered_at', 'reminders_sent', 'last_reminder_at']
    filter_horizontal = ['required_form_templates']


class ApiKeyRotationInline(admin.TabularInline):
    model = ApiKeyRotation
    fk_name = 'api_key'
    extra = 0
    can_delete = False
    readonly_fields = ['new_key', 'rotation_type', 'rotated_at', 'rotated_by', 'grace_period_ends', 'reason']


@admin.register(ApiKey)
class ApiKeyAdmin(admin.ModelAdmin):
    list_display = ['name', 'key_prefix', 'user', 'environment', 'expires_at', 'revoked_at', 'last_used_at']
    list_filter = ['environment']
    search_fields = ['name', 'key_prefix', 'user__username']
    raw_id_fields = ['user']
    exclude = ['key_hash']
    readonly_fields = ['key_prefix', 'last_used_at', 'usage_count', 'failed_auth_count', 'created_at']
    inlines = [ApiKeyRotationInline]
