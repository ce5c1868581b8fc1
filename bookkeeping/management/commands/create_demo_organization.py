import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from django.utils.text import slugify

from bookkeeping.models import (Bill, Category, Customer, Invoice, Item,
                                Membership, Organization, SalesOrder, TaxRate,
                                Vendor)
from bookkeeping.services.documents import create_document, set_status
from bookkeeping.services.payment import create_payment

User = get_user_model()


class Command(BaseCommand):
    help = (
        "Create a demo organization, owner user, catalog and a few sample "
        "documents and payments for trying the API."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--organization-name",
            default="Demo Traders",
            help="Name of the demo organization to create.",
        )
        parser.add_argument(
            "--username", default="demo", help="Username for the demo owner."
        )
        parser.add_argument(
            "--password", default="demo123", help="Password for the demo owner."
        )

    def unique_slug(self, name, max_tries=100):
        # "Demo Traders" -> "demo-traders", then "demo-traders-1", ...
        base = slugify(name) or "organization"
        slug, i = base, 1
        while Organization.objects.filter(slug=slug).exists():
            slug = f"{base}-{i}"
            i += 1
            if i > max_tries:
                raise RuntimeError("Couldn't generate unique slug")
        return slug

    @transaction.atomic
    def handle(self, *args, **options):
        name = options["organization_name"]
        username = options["username"]
        password = options["password"]
        today = timezone.localdate()

        # 1. Owner and organization
        user, created = User.objects.get_or_create(
            username=username, defaults={"email": f"{username}@example.com"}
        )
        if created:
            user.set_password(password)
            user.save()

        org = Organization.objects.create(
            name=name, slug=self.unique_slug(name), owner=user, currency_code="INR"
        )
        Membership.objects.create(
            user=user, organization=org, role=Membership.Role.OWNER
        )
        if user.default_organization_id is None:
            user.default_organization = org
            user.save(update_fields=["default_organization"])
        self.stdout.write(self.style.SUCCESS(f"Created organization: {org}"))
        self.stdout.write(
            self.style.SUCCESS(f"Owner: {user.username} (pw={password})"))

        # 2. Catalog
        gst = TaxRate.objects.create(organization=org, name="GST 18%",
                                     rate=Decimal("18.00"))
        hardware = Category.objects.create(organization=org, name="Hardware",
                                           type=Category.Type.ITEM)
        services = Category.objects.create(organization=org, name="Services",
                                           type=Category.Type.ITEM)
        widget = Item.objects.create(
            organization=org, name="Widget", sku="WID-001",
            type=Item.Type.PRODUCT, price=Decimal("250.00"),
            cost_price=Decimal("150.00"), quantity=Decimal("100"),
            reorder_level=Decimal("10"), tax_rate=gst, category=hardware,
        )
        setup = Item.objects.create(
            organization=org, name="Installation", sku="SRV-001",
            type=Item.Type.SERVICE, price=Decimal("1000.00"),
            tax_rate=gst, category=services,
        )
        self.stdout.write(self.style.SUCCESS("Created tax rate, categories, items"))

        # 3. Counterparties
        customer = Customer.objects.create(
            organization=org, name="Acme Retail", email="accounts@acme.example",
            payment_terms=15,
        )
        vendor = Vendor.objects.create(
            organization=org, name="Parts Wholesale", email="billing@parts.example",
        )
        self.stdout.write(self.style.SUCCESS(f"Created customer {customer} and vendor {vendor}"))

        # 4. Documents
        order = create_document(SalesOrder, org, {
            "customer_id": str(customer.pk),
            "date": today.isoformat(),
            "line_items": [
                {"item_id": str(widget.pk), "quantity": "4"},
                {"item_id": str(setup.pk), "quantity": "1"},
            ],
        }, user)
        invoice = create_document(Invoice, org, {
            "customer_id": str(customer.pk),
            "sales_order_id": str(order.pk),
            "date": today.isoformat(),
            "line_items": [
                {"item_id": str(widget.pk), "quantity": "4"},
                {"item_id": str(setup.pk), "quantity": "1"},
            ],
        }, user)
        set_status(Invoice, org, invoice.pk, Invoice.REOPENED_STATUS, user=user)
        bill = create_document(Bill, org, {
            "vendor_id": str(vendor.pk),
            "date": (today - datetime.timedelta(days=5)).isoformat(),
            "reference_number": "PW-7781",
            "line_items": [
                {"item_id": str(widget.pk), "quantity": "50",
                 "price": "150.00"},
            ],
        }, user)
        self.stdout.write(self.style.SUCCESS(
            f"Created {order.number}, {invoice.number}, {bill.number}"))

        # 5. A part payment against the invoice
        payment = create_payment(org, {
            "direction": "incoming",
            "invoice_id": str(invoice.pk),
            "amount": "1000.00",
            "date": today.isoformat(),
            "payment_method": "upi",
        }, user)
        self.stdout.write(self.style.SUCCESS(
            f"Recorded {payment.payment_number} against {invoice.number}"))
        self.stdout.write(self.style.SUCCESS("Demo organization setup complete!"))
