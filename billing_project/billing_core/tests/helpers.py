from decimal import Decimal

from ..models import Company, Customer, EntityMembership, User


class TenantFixture:
    """Company + user with a membership + one customer."""

    def __init__(self, name="Test Co", username="alice", role="accountant"):
        self.company = Company.objects.create(name=name)
        self.user = User.objects.create_user(username=username, password="pw")
        self.membership = EntityMembership.objects.create(
            user=self.user, company=self.company, role=role
        )
        self.customer = Customer.objects.create(company=self.company, name=f"{name} Customer")


def items_totalling(amount):
    """One line worth `amount`, no tax."""
    return [{"description": "Services", "quantity": 1, "unit_price": str(Decimal(amount))}]
