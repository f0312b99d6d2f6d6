from django.contrib import admin

from .models import (
    Complaint,
    ComplaintCommunication,
    ComplaintStatusLog,
    ComplaintTransfer,
)


class ComplaintStatusLogInline(admin.TabularInline):
    model = ComplaintStatusLog
    extra = 0
    readonly_fields = ("from_status", "to_status", "changed_by", "message", "created_at")
    can_delete = False


class ComplaintTransferInline(admin.TabularInline):
    model = ComplaintTransfer
    fk_name = "complaint"
    extra = 0
    fields = ("from_department", "from_sub_department", "to_department",
              "to_sub_department", "reason", "status", "initiated_at", "resolved_at")
    readonly_fields = fields
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Complaint)
class ComplaintAdmin(admin.ModelAdmin):
    list_display = ("complaint_number", "title", "status", "owner_department",
                    "owner_sub_department", "created_at")
    list_filter = ("status", "owner_department")
    search_fields = ("complaint_number", "title")
    # Custody and status move only through the transfer and status services.
    readonly_fields = ("complaint_number", "status", "closed_by", "closed_at")
    inlines = [ComplaintTransferInline, ComplaintStatusLogInline]

    def get_readonly_fields(self, request, obj=None):
        if obj is None:
            return self.readonly_fields
        return self.readonly_fields + ("owner_department", "owner_sub_department")


@admin.register(ComplaintTransfer)
class ComplaintTransferAdmin(admin.ModelAdmin):
    list_display = ("id", "complaint", "from_department", "to_department",
                    "reason", "status", "initiated_at", "resolved_at")
    list_filter = ("status", "reason", "transfer_type")
    search_fields = ("complaint__complaint_number",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ComplaintCommunication)
class ComplaintCommunicationAdmin(admin.ModelAdmin):
    list_display = ("complaint", "author", "message_type", "created_at")
    list_filter = ("message_type",)
    search_fields = ("complaint__complaint_number", "message")
