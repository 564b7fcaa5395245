from django.core.management.base import BaseCommand

from wards.models import Role

DEFAULT_ROLES = [
    ("Admin", "Manages care units, beds and staff accounts", ["*"]),
    ("Staff", "Ward staff and doctors", ["patient:read", "patient:write", "care_unit:read"]),
]


class Command(BaseCommand):
    help = "Ensure the default Admin and Staff roles exist (idempotent)."

    def handle(self, *args, **opts):
        for name, description, permissions in DEFAULT_ROLES:
            role = Role.objects.filter(name__iexact=name).first()
            if role is None:
                Role.objects.create(name=name, description=description, permissions=permissions)
                self.stdout.write(self.style.SUCCESS(f"created: {name}"))
            else:
                self.stdout.write(f"exists: {role.name}")
        self.stdout.write(self.style.SUCCESS("Default roles ensured."))
