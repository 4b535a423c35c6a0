from .exceptions import Unauthorized
from .models import EntityMembership


def can_mutate_financials(user, company) -> bool:
    """
    True when `user` may create or reverse invoices, payments and receipts
    of `company`: superusers, or an active owner/admin/accountant membership.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    if not getattr(user, "is_active", True):
        return False
    if user.is_superuser:
        return True
    if company is None:
        return False
    return EntityMembership.objects.filter(
        user=user,
        company=company,
        is_active=True,
        role__in=EntityMembership.FINANCIAL_ROLES,
    ).exists()


def require_financial_mutation(user, company):
    """Return the acting user (for created_by) or raise Unauthorized."""
    if not can_mutate_financials(user, company):
        raise Unauthorized("Not authorized to modify financial records of this company")
    return user
