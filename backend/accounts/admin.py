from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "officer_id", "first_name", "last_name",
                    "access_level", "assigned_department", "assigned_sub_department",
                    "is_active")
    search_fields = ("username", "email", "officer_id")
    list_filter = ("is_active", "access_level", "assigned_department")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Organisation", {"fields": ("officer_id", "phone_number", "access_level",
                                     "assigned_department", "assigned_sub_department")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Organisation", {"fields": ("email", "first_name", "last_name", "officer_id",
                                     "access_level", "assigned_department",
                                     "assigned_sub_department")}),
    )
