from django.core.management.base import BaseCommand
from immunization.catalog import seed_national_calendar


class Command(BaseCommand):
    help = 'Seeds the national vaccination calendar into the vaccine catalog'

    def handle(self, *args, **options):
        created, existing = seed_national_calendar()

        for vaccine in created:
            self.stdout.write(self.style.SUCCESS(f'Seeded: {vaccine.name} (ages {vaccine.recommended_ages})'))
        for vaccine in existing:
            self.stdout.write(self.style.WARNING(f'Exists: {vaccine.name}'))

        self.stdout.write(self.style.SUCCESS(
            f'Vaccine catalog seeded: {len(created)} created, {len(existing)} already present.'
        ))
