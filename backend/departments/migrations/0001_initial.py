from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Department",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("name", models.CharField(max_length=150, unique=True, verbose_name="Name")),
                ("code", models.CharField(
                    help_text="Short unique code, e.g. 'WTR'.",
                    max_length=20,
                    unique=True,
                    verbose_name="Code",
                )),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
            ],
            options={
                "verbose_name": "Department",
                "verbose_name_plural": "Departments",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="SubDepartment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("name", models.CharField(max_length=150, verbose_name="Name")),
                ("code", models.CharField(max_length=20, verbose_name="Code")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("department", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="sub_departments",
                    to="departments.department",
                    verbose_name="Department",
                )),
            ],
            options={
                "verbose_name": "Sub-Department",
                "verbose_name_plural": "Sub-Departments",
                "ordering": ["department__name", "name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("department", "code"),
                        name="uniq_subdepartment_code_per_department",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DepartmentConnection",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("connection_type", models.CharField(
                    choices=[
                        ("transfer_enabled", "Transfer Enabled"),
                        ("communication_enabled", "Communication Enabled"),
                        ("both", "Transfer & Communication"),
                    ],
                    default="both",
                    max_length=32,
                    verbose_name="Connection Type",
                )),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("notes", models.CharField(blank=True, default="", max_length=500, verbose_name="Notes")),
                ("transfer_count", models.PositiveIntegerField(default=0, verbose_name="Transfer Count")),
                ("last_transfer_at", models.DateTimeField(blank=True, null=True, verbose_name="Last Transfer At")),
                ("source_department", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="outgoing_connections",
                    to="departments.department",
                    verbose_name="Source Department",
                )),
                ("target_department", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="incoming_connections",
                    to="departments.department",
                    verbose_name="Target Department",
                )),
            ],
            options={
                "verbose_name": "Department Connection",
                "verbose_name_plural": "Department Connections",
                "ordering": ["-transfer_count", "id"],
                "indexes": [
                    models.Index(fields=["is_active", "source_department"], name="departments_is_acti_29a96e_idx"),
                    models.Index(fields=["is_active", "target_department"], name="departments_is_acti_0cfe8f_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("source_department", "target_department"),
                        name="uniq_department_connection",
                    ),
                    models.CheckConstraint(
                        condition=~models.Q(source_department=models.F("target_department")),
                        name="connection_departments_differ",
                    ),
                ],
            },
        ),
    ]
