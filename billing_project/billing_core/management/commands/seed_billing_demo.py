from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from billing_core.models import Company, Customer, EntityMembership
from billing_core.services import create_financial_document_graph

User = get_user_model()


class Command(BaseCommand):
    help = (
        "Create a demo company, an accountant user, a customer and one "
        "direct receipt (invoice + payment + receipt)."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--company-name",
            default="Demo Company",
            help="Name of the demo company to create.",
        )
        parser.add_argument(
            "--username", default="demo", help="Username for the demo user."
        )
        parser.add_argument(
            "--password", default="demo123", help="Password for the demo user."
        )
        parser.add_argument(
            "--amount",
            default="1000.00",
            help="Amount paid on the demo invoice.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        company_name = options["company_name"]
        username = options["username"]
        password = options["password"]

        # 1. Company (slug generated on save)
        company, _ = Company.objects.get_or_create(name=company_name)
        self.stdout.write(self.style.SUCCESS(f"Company: {company}"))

        # 2. User with an accountant membership
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": f"{username}@example.com", "default_company": company},
        )
        if created:  # if user newly created
            user.set_password(password)
            user.save()
        EntityMembership.objects.get_or_create(
            user=user, company=company, defaults={"role": "accountant"}
        )
        self.stdout.write(self.style.SUCCESS(f"User: {user.username} (pw={password})"))

        # 3. Customer
        customer, _ = Customer.objects.get_or_create(
            company=company, name=f"{company_name} Customer"
        )
        self.stdout.write(self.style.SUCCESS(f"Customer: {customer}"))

        # 4. One direct receipt
        amount = Decimal(options["amount"])
        result = create_financial_document_graph(
            company.pk,
            customer.pk,
            {"amount": amount, "payment_method": "cash"},
            items=[
                {"description": "Consulting", "quantity": 2, "unit_price": "400.00"},
                {"description": "Setup fee", "quantity": 1, "unit_price": "200.00"},
            ],
            user=user,
        )
        self.stdout.write(
            self.style.SUCCESS(
                f"Created {result['invoice'].invoice_number} "
                f"({result['invoice'].status}), "
                f"{result['payment'].payment_number}, "
                f"{result['receipt'].receipt_number}"
            )
        )
        self.stdout.write(self.style.SUCCESS("Demo billing data ready!"))
