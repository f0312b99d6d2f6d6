from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


COMPLAINT_STATUS_CHOICES = [
    ("open", "Open"),
    ("in_progress", "In Progress"),
    ("resolved", "Resolved"),
    ("rejected", "Rejected"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("departments", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Complaint",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("complaint_number", models.CharField(
                    blank=True,
                    help_text="Human-readable reference, e.g. GRV2026000042.",
                    max_length=20,
                    null=True,
                    unique=True,
                    verbose_name="Complaint Number",
                )),
                ("title", models.CharField(max_length=255, verbose_name="Title")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("status", models.CharField(
                    choices=COMPLAINT_STATUS_CHOICES,
                    db_index=True,
                    default="open",
                    max_length=16,
                    verbose_name="Status",
                )),
                ("resolution_note", models.TextField(blank=True, default="", verbose_name="Resolution Note")),
                ("rejection_reason", models.TextField(blank=True, default="", verbose_name="Rejection Reason")),
                ("closed_at", models.DateTimeField(blank=True, null=True, verbose_name="Closed At")),
                ("assigned_officer", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="assigned_complaints",
                    to=settings.AUTH_USER_MODEL,
                    verbose_name="Assigned Officer",
                )),
                ("citizen", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="filed_complaints",
                    to=settings.AUTH_USER_MODEL,
                    verbose_name="Filed By",
                )),
                ("closed_by", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="closed_complaints",
                    to=settings.AUTH_USER_MODEL,
                    verbose_name="Closed By",
                )),
                ("owner_department", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="owned_complaints",
                    to="departments.department",
                    verbose_name="Owner Department",
                )),
                ("owner_sub_department", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="owned_complaints",
                    to="departments.subdepartment",
                    verbose_name="Owner Sub-Department",
                )),
            ],
            options={
                "verbose_name": "Complaint",
                "verbose_name_plural": "Complaints",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["owner_department", "owner_sub_department"],
                        name="complaints__owner_d_38511c_idx",
                    ),
                    models.Index(fields=["owner_department", "status"], name="complaints__owner_d_1b0727_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ComplaintStatusLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("from_status", models.CharField(
                    choices=COMPLAINT_STATUS_CHOICES,
                    max_length=16,
                    verbose_name="From Status",
                )),
                ("to_status", models.CharField(
                    choices=COMPLAINT_STATUS_CHOICES,
                    max_length=16,
                    verbose_name="To Status",
                )),
                ("message", models.TextField(blank=True, default="", verbose_name="Message")),
                ("changed_by", models.ForeignKey(
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="complaint_status_changes",
                    to=settings.AUTH_USER_MODEL,
                    verbose_name="Changed By",
                )),
                ("complaint", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="status_logs",
                    to="complaints.complaint",
                    verbose_name="Complaint",
                )),
            ],
            options={
                "verbose_name": "Complaint Status Log",
                "verbose_name_plural": "Complaint Status Logs",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="ComplaintTransfer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("transfer_type", models.CharField(
                    choices=[
                        ("internal", "Within Department"),
                        ("inter_department", "Between Departments"),
                    ],
                    max_length=20,
                    verbose_name="Transfer Type",
                )),
                ("reason", models.CharField(
                    choices=[
                        ("clarification", "Clarification"),
                        ("re_verification", "Re-verification"),
                        ("further_investigation", "Further Investigation"),
                        ("specialized_handling", "Specialized Handling"),
                        ("wrong_department", "Wrong Department"),
                        ("escalation", "Escalation"),
                        ("other", "Other"),
                    ],
                    max_length=32,
                    verbose_name="Reason",
                )),
                ("notes", models.CharField(blank=True, default="", max_length=500, verbose_name="Notes")),
                ("status", models.CharField(
                    choices=[
                        ("pending", "Pending"),
                        ("accepted", "Accepted"),
                        ("rejected", "Rejected"),
                    ],
                    db_index=True,
                    default="pending",
                    max_length=16,
                    verbose_name="Status",
                )),
                ("initiated_by_level", models.CharField(max_length=16, verbose_name="Initiator Access Level")),
                ("initiated_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Initiated At")),
                ("resolved_at", models.DateTimeField(blank=True, null=True, verbose_name="Resolved At")),
                ("rejection_reason", models.CharField(
                    blank=True,
                    default="",
                    max_length=500,
                    verbose_name="Rejection Reason",
                )),
                ("complaint", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="transfers",
                    to="complaints.complaint",
                    verbose_name="Complaint",
                )),
                ("from_department", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="outgoing_transfers",
                    to="departments.department",
                    verbose_name="From Department",
                )),
                ("from_sub_department", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="outgoing_transfers",
                    to="departments.subdepartment",
                    verbose_name="From Sub-Department",
                )),
                ("to_department", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="incoming_transfers",
                    to="departments.department",
                    verbose_name="To Department",
                )),
                ("to_sub_department", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="incoming_transfers",
                    to="departments.subdepartment",
                    verbose_name="To Sub-Department",
                )),
                ("initiated_by", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="initiated_transfers",
                    to=settings.AUTH_USER_MODEL,
                    verbose_name="Initiated By",
                )),
                ("resolved_by", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="resolved_transfers",
                    to=settings.AUTH_USER_MODEL,
                    verbose_name="Resolved By",
                )),
            ],
            options={
                "verbose_name": "Complaint Transfer",
                "verbose_name_plural": "Complaint Transfers",
                "ordering": ["initiated_at", "id"],
                "indexes": [
                    models.Index(fields=["to_department", "status"], name="complaints__to_depa_496e8f_idx"),
                    models.Index(fields=["from_department", "status"], name="complaints__from_de_6788b6_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("complaint",),
                        condition=models.Q(status="pending"),
                        name="uniq_pending_transfer_per_complaint",
                    ),
                    models.CheckConstraint(
                        condition=(
                            models.Q(status="pending", resolved_at__isnull=True)
                            | (~models.Q(status="pending") & models.Q(resolved_at__isnull=False))
                        ),
                        name="transfer_resolved_at_matches_status",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ComplaintCommunication",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("message", models.TextField(verbose_name="Message")),
                ("message_type", models.CharField(
                    choices=[
                        ("general", "General"),
                        ("transfer", "Transfer"),
                        ("status", "Status Update"),
                    ],
                    default="general",
                    max_length=16,
                    verbose_name="Message Type",
                )),
                ("author", models.ForeignKey(
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="complaint_messages",
                    to=settings.AUTH_USER_MODEL,
                    verbose_name="Author",
                )),
                ("complaint", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="communications",
                    to="complaints.complaint",
                    verbose_name="Complaint",
                )),
                ("tagged_departments", models.ManyToManyField(
                    blank=True,
                    related_name="tagged_in_messages",
                    to="departments.department",
                    verbose_name="Tagged Departments",
                )),
            ],
            options={
                "verbose_name": "Complaint Communication",
                "verbose_name_plural": "Complaint Communications",
                "ordering": ["created_at", "id"],
            },
        ),
    ]
