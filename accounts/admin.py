from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User


@admin.register(User)
class PortalUserAdmin(UserAdmin):
    list_display = ('username', 'email', 'user_type', 'staff_unit', 'is_suspended', 'is_active')
    list_filter = ('user_type', 'staff_unit', 'is_suspended', 'is_active')
    search_fields = ('username', 'email', 'first_name', 'last_name')
    fieldsets = UserAdmin.fieldsets + (
        ('Portal Profile', {'fields': ('user_type', 'staff_unit', 'staff_position', 'phone', 'organization')}),
        ('Suspension', {'fields': ('is_suspended', 'suspended_at', 'suspended_by', 'suspension_reason')}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Portal Profile', {'fields': ('user_type', 'staff_unit', 'staff_position')}),
    )
    # Suspension goes through the user management screen so the audit fields stay consistent.
    readonly_fields = ('is_suspended', 'suspended_at', 'suspended_by', 'suspension_reason')
