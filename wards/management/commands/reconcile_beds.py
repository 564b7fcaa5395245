from django.core.management.base import BaseCommand

from wards.services.patients import PatientLifecycle


class Command(BaseCommand):
    help = "Recompute bed occupancy from the patients holding each bed."

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true', help="Report mismatches without fixing them.")

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        result = PatientLifecycle().reconcile_bed_occupancy(dry_run=dry_run)
        verb = "would correct" if dry_run else "corrected"
        for bed_id in result['corrected']:
            self.stdout.write(f"{verb}: bed {bed_id}")
        for bed_id in result['conflicts']:
            self.stdout.write(self.style.WARNING(f"held by several patients: bed {bed_id}"))
        self.stdout.write(self.style.SUCCESS(f"{len(result['corrected'])} bed(s) {verb}."))
