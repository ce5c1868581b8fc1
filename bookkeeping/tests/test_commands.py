from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from ..models import Invoice, Membership, Organization, Payment


class DemoCommandTests(TestCase):
    def test_seed_demo_builds_a_working_organization(self):
        out = StringIO()
        call_command("seed_demo", organization="Demo Traders", stdout=out)

        org = Organization.objects.get(name="Demo Traders")
        self.assertTrue(
            Membership.objects.filter(organization=org, role="owner").exists())
        invoice = Invoice.objects.for_organization(org).get()
        self.assertEqual(invoice.invoice_number, "INV-0001")
        # 4 x 250 + 1000, both at 18% GST, less a 1000 payment
        self.assertEqual(str(invoice.total), "2360.00")
        self.assertEqual(str(invoice.balance_due), "1360.00")
        self.assertEqual(Payment.objects.for_organization(org).count(), 1)
        self.assertIn("Demo data seeded successfully!", out.getvalue())

    def test_second_run_gets_a_fresh_slug(self):
        call_command("create_demo_organization", stdout=StringIO())
        call_command("create_demo_organization", stdout=StringIO())
        slugs = sorted(Organization.objects.values_list("slug", flat=True))
        self.assertEqual(slugs, ["demo-traders", "demo-traders-1"])
