from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_date

from immunization.lifecycle import mark_overdue


class Command(BaseCommand):
    help = 'Marks scheduled vaccinations whose date has passed as delayed'

    def add_arguments(self, parser):
        parser.add_argument('--date', help='Reference day (YYYY-MM-DD), defaults to today')

    def handle(self, *args, **options):
        if options.get('date'):
            try:
                today = parse_date(options['date'])
            except ValueError:
                today = None
            if today is None:
                raise CommandError(f"Invalid date: {options['date']}")
        else:
            today = timezone.localdate()

        count = mark_overdue(today=today)

        if count > 0:
            self.stdout.write(
                self.style.SUCCESS(f'Marked {count} vaccinations as delayed as of {today}')
            )
        else:
            self.stdout.write(
                self.style.SUCCESS('No overdue vaccinations to mark.')
            )
