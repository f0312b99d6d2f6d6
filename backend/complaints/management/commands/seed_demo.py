"""
Management command: seed_demo
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds a small organisation for local development: three departments
with sub-departments, one transfer connection, a user per access level
and a couple of complaints held by the water department.

The command is **idempotent**: departments, connections and users are
matched on their natural keys and left alone when they already exist.
Complaints are only created when the demo citizen has none yet.

Usage::

    python manage.py seed_demo
    python manage.py seed_demo --password "Another!Pass1"
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from accounts.models import AccessLevel, User
from complaints.services import ComplaintIntakeService
from departments.models import ConnectionType, Department, DepartmentConnection, SubDepartment

# (code, name) → [(sub_code, sub_name), ...]
ORGANISATION = {
    ("WTR", "Water Supply"): [("OPS", "Operations"), ("BIL", "Billing")],
    ("ELC", "Electricity"): [("GRD", "Grid"), ("MTR", "Metering")],
    ("HLT", "Health"): [("HOS", "Hospitals")],
}

# (username, access_level, department code, sub-department code)
USERS = [
    ("citizen", AccessLevel.PUBLIC, None, None),
    ("water_officer", AccessLevel.OFFICER, "WTR", "OPS"),
    ("billing_officer", AccessLevel.OFFICER, "WTR", "BIL"),
    ("water_admin", AccessLevel.ADMIN, "WTR", None),
    ("grid_officer", AccessLevel.OFFICER, "ELC", "GRD"),
    ("power_admin", AccessLevel.ADMIN, "ELC", None),
    ("super_admin", AccessLevel.SUPER_ADMIN, None, None),
]

COMPLAINTS = [
    ("No water supply since Monday", "Ward 12 has had no supply for three days."),
    ("Street light pole sparking", "Pole near the water tank on 4th Cross is sparking."),
]


class Command(BaseCommand):
    help = "Seed demo departments, users and complaints for local development."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            default="Demo!Pass123",
            help="Password given to newly created demo users.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING("\n  Seeding organisation ..."))
        units = self._seed_organisation()

        connection, created = DepartmentConnection.objects.get_or_create(
            source_department=units["WTR"],
            target_department=units["ELC"],
            defaults={"connection_type": ConnectionType.BOTH, "notes": "Demo connection"},
        )
        self.stdout.write(f"  {'Created' if created else 'Kept'} connection {connection}")

        self.stdout.write(self.style.MIGRATE_HEADING("\n  Seeding users ..."))
        users = self._seed_users(units, options["password"])

        citizen = users["citizen"]
        if citizen.filed_complaints.exists():
            self.stdout.write(self.style.WARNING("  Demo complaints already exist, skipping."))
        else:
            for title, description in COMPLAINTS:
                complaint = ComplaintIntakeService.create_complaint(
                    title=title,
                    description=description,
                    department=units["WTR"],
                    sub_department=units["WTR/OPS"],
                    citizen=citizen,
                )
                self.stdout.write(f"  Created complaint {complaint.complaint_number}")

        self.stdout.write(self.style.SUCCESS("\n  Demo data ready.\n"))

    def _seed_organisation(self) -> dict:
        units = {}
        for (code, name), subs in ORGANISATION.items():
            department, _ = Department.objects.get_or_create(code=code, defaults={"name": name})
            units[code] = department
            for sub_code, sub_name in subs:
                sub_department, _ = SubDepartment.objects.get_or_create(
                    department=department,
                    code=sub_code,
                    defaults={"name": sub_name},
                )
                units[f"{code}/{sub_code}"] = sub_department
            self.stdout.write(f"  {department.code}: {', '.join(sub_code for sub_code, _ in subs)}")
        return units

    def _seed_users(self, units: dict, password: str) -> dict:
        users = {}
        for username, access_level, dept_code, sub_code in USERS:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username=username,
                    password=password,
                    email=f"{username}@example.com",
                    officer_id=None if access_level == AccessLevel.PUBLIC else f"DEMO-{len(users) + 1:04d}",
                    access_level=access_level,
                    assigned_department=units.get(dept_code),
                    assigned_sub_department=units.get(f"{dept_code}/{sub_code}"),
                    is_staff=access_level == AccessLevel.SUPER_ADMIN,
                    is_superuser=access_level == AccessLevel.SUPER_ADMIN,
                )
                self.stdout.write(self.style.SUCCESS(f"  + {username} ({access_level})"))
            else:
                self.stdout.write(f"    {username} already exists")
            users[username] = user
        return users
