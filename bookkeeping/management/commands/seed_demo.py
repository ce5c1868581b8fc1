from django.core.management import call_command
from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Seeds the database with demo data (wraps create_demo_organization)."

    # Define command-line argument
    def add_arguments(self, parser):
        parser.add_argument(
            "--organization",
            type=str,
            default="Demo Traders",
            help="Name of the demo organization (default: Demo Traders)",
        )
        parser.add_argument("--username", type=str, default="demo")

    def handle(self, *args, **options):
        org_name = options["organization"]

        self.stdout.write(self.style.NOTICE(
            f"Seeding demo data for {org_name}..."))
        call_command(
            "create_demo_organization",
            organization_name=org_name,
            username=options["username"],
            stdout=self.stdout,
        )
        self.stdout.write(self.style.SUCCESS("Demo data seeded successfully!"))
