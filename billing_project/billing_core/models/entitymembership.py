from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.text import slugify


# ---------- Tenant / Company ----------
class Company(models.Model):

    """Tenant / Organization that issues invoices and receipts"""
    name = models.CharField(max_length=200)

    # URL-friendly identifier, generated from name when left blank
    slug = models.SlugField(max_length=80, unique=True, blank=True)

    # Single-currency books: the code is informational only
    currency_code = models.CharField(max_length=10, default="USD")

    # Creator / admin of the company (kept when the user is deleted)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="owned_companies",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "companies"
        verbose_name_plural = "companies"

    def __str__(self):
        return self.name

    def _unique_slug(self, max_tries=100):
        # "Test Ltd" → "test-ltd" → "test-ltd-1" → "test-ltd-2"
        base = slugify(self.name) or "company"
        slug = base
        i = 1
        while Company.objects.filter(slug=slug).exclude(pk=self.pk).exists():
            slug = f"{base}-{i}"
            i += 1
            if i > max_tries:
                raise ValidationError("Couldn't generate unique slug")
        return slug

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = self._unique_slug()
        return super().save(*args, **kwargs)


# ---------- Custom User ----------
class User(AbstractUser):
    """
    AUTH_USER_MODEL = "billing_core.User" is set in settings
    before the first migrate.
    """
    default_company = models.ForeignKey(
        "Company",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="default_users",
    )

    phone = models.CharField(max_length=32, blank=True)

    class Meta:
        indexes = [models.Index(fields=["default_company"], name="user_default_company_idx")]

    def __str__(self):
        return self.get_full_name() or self.username


# ---------- EntityMembership ----------
class EntityMembership(models.Model):  # join model between User and Company

    ROLE_CHOICES = [
        ("owner", "Owner"),
        ("admin", "Admin"),
        # can record payments, issue receipts and reverse them
        ("accountant", "Accountant"),
        ("viewer", "Viewer"),  # read-only access
    ]

    # Roles allowed to mutate invoices, payments and receipts
    FINANCIAL_ROLES = ("owner", "admin", "accountant")

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    company = models.ForeignKey(
        "Company", on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="viewer")

    # Suspended memberships stay on record but grant nothing
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "entity_memberships"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "company"], name="uq_user_company_membership"
            ),
        ]
        indexes = [
            models.Index(fields=["company", "user"], name="membership_company_user_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.company} ({self.role})"
