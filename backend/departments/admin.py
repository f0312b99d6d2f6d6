from django.contrib import admin

from .models import Department, DepartmentConnection, SubDepartment


class SubDepartmentInline(admin.TabularInline):
    model = SubDepartment
    extra = 0


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "code")
    inlines = [SubDepartmentInline]


@admin.register(SubDepartment)
class SubDepartmentAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "department", "is_active")
    list_filter = ("department", "is_active")
    search_fields = ("name", "code")


@admin.register(DepartmentConnection)
class DepartmentConnectionAdmin(admin.ModelAdmin):
    list_display = ("source_department", "target_department", "connection_type",
                    "is_active", "transfer_count", "last_transfer_at")
    list_filter = ("connection_type", "is_active")
    readonly_fields = ("transfer_count", "last_transfer_at")
