import datetime

from django.core.management.base import BaseCommand, CommandError

from bookkeeping.services.documents import mark_overdue


class Command(BaseCommand):
    help = "Flip sent invoices and received bills past their due date to overdue."

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            help="Treat this day (YYYY-MM-DD) as today. Defaults to the local date.",
        )

    def handle(self, *args, **options):
        today = None
        if options["date"]:
            try:
                today = datetime.date.fromisoformat(options["date"])
            except ValueError:
                raise CommandError(f"Invalid --date: {options['date']}")
        changed = mark_overdue(today)
        for model_name, count in changed.items():
            self.stdout.write(self.style.SUCCESS(f"{model_name}: {count} marked overdue"))
