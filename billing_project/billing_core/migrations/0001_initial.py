import decimal

import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Company",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(blank=True, max_length=80, unique=True)),
                ("currency_code", models.CharField(default="USD", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name_plural": "companies",
                "db_table": "companies",
            },
        ),
        migrations.CreateModel(
            name="DocumentSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("document_type", models.CharField(choices=[("INV", "Invoice"), ("PRO", "Proforma invoice"), ("QT", "Quotation"), ("PO", "Purchase order"), ("LPO", "Local purchase order"), ("DN", "Delivery note"), ("CN", "Credit note"), ("PAY", "Payment"), ("REC", "Receipt"), ("RA", "Remittance advice"), ("REM", "Remittance")], max_length=4)),
                ("year", models.PositiveIntegerField()),
                ("sequence_number", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "document_sequences",
                "indexes": [models.Index(fields=["document_type"], name="docseq_type_idx")],
                "constraints": [models.UniqueConstraint(fields=("document_type", "year"), name="uq_document_sequence_type_year")],
            },
        ),
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("username", models.CharField(error_messages={"unique": "A user with that username already exists."}, help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.", max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name="username")),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email address")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("default_company", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="default_users", to="billing_core.company")),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
            ],
            options={
                "indexes": [models.Index(fields=["default_company"], name="user_default_company_idx")],
            },
            managers=[
                ("objects", django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.AddField(
            model_name="company",
            name="owner",
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="owned_companies", to=settings.AUTH_USER_MODEL),
        ),
        migrations.CreateModel(
            name="EntityMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("owner", "Owner"), ("admin", "Admin"), ("accountant", "Accountant"), ("viewer", "Viewer")], default="viewer", max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to="billing_core.company")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "entity_memberships",
                "indexes": [models.Index(fields=["company", "user"], name="membership_company_user_idx")],
                "constraints": [models.UniqueConstraint(fields=("user", "company"), name="uq_user_company_membership")],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="billing_core.company")),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "audit_logs",
                "indexes": [
                    models.Index(fields=["company", "user"], name="audit_company_user_idx"),
                    models.Index(fields=["company", "created_at"], name="audit_company_created_idx"),
                    models.Index(fields=["object_type", "object_id"], name="audit_object_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("contact_email", models.EmailField(blank=True, max_length=254, null=True)),
                ("contact_phone", models.CharField(blank=True, max_length=32)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="billing_core.company")),
            ],
            options={
                "db_table": "customers",
                "indexes": [models.Index(fields=["company", "name"], name="customer_company_name_idx")],
                "constraints": [models.UniqueConstraint(fields=("company", "name"), name="uq_company_customer_name")],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sku", models.CharField(blank=True, max_length=80, null=True)),
                ("name", models.CharField(max_length=200)),
                ("default_unit_price", models.DecimalField(decimal_places=4, default=decimal.Decimal("0.00"), max_digits=18)),
                ("is_active", models.BooleanField(default=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="billing_core.company")),
            ],
            options={
                "db_table": "products",
                "indexes": [models.Index(fields=["company", "name"], name="product_company_name_idx")],
                "constraints": [models.UniqueConstraint(fields=("company", "sku"), name="uq_company_product_sku")],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_number", models.CharField(max_length=64)),
                ("invoice_date", models.DateField()),
                ("due_date", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("partial", "Partially paid"), ("paid", "Paid")], default="draft", max_length=10)),
                ("subtotal", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("total_amount", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("paid_amount", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("balance_due", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="billing_core.company")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="billing_core.customer")),
            ],
            options={
                "db_table": "invoices",
                "indexes": [
                    models.Index(fields=["company", "invoice_number"], name="invoice_company_number_idx"),
                    models.Index(fields=["company", "customer"], name="invoice_company_customer_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "invoice_number"), name="uq_invoice_company_number"),
                    models.CheckConstraint(condition=models.Q(("total_amount__gte", 0), ("paid_amount__gte", 0), ("balance_due__gte", 0)), name="inv_non_negative_amounts"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField(blank=True, default="")),
                ("quantity", models.DecimalField(decimal_places=4, default=decimal.Decimal("1"), max_digits=14)),
                ("unit_price", models.DecimalField(decimal_places=4, default=decimal.Decimal("0.00"), max_digits=18)),
                ("tax_percentage", models.DecimalField(decimal_places=4, default=decimal.Decimal("0"), max_digits=7)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("line_total", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="items", to="billing_core.invoice")),
                ("product", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to="billing_core.product")),
            ],
            options={
                "db_table": "invoice_items",
                "ordering": ["sort_order", "id"],
                "indexes": [models.Index(fields=["invoice", "sort_order"], name="invitem_invoice_order_idx")],
                "constraints": [models.CheckConstraint(condition=models.Q(("quantity__gte", 0), ("unit_price__gte", 0), ("tax_amount__gte", 0)), name="invitem_non_negative_amounts")],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("payment_number", models.CharField(max_length=64)),
                ("payment_date", models.DateField()),
                ("payment_method", models.CharField(choices=[("cash", "Cash"), ("cheque", "Cheque"), ("bank_transfer", "Bank Transfer"), ("mobile_money", "Mobile Money"), ("card", "Card"), ("other", "Other")], default="cash", max_length=20)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("reference_number", models.CharField(blank=True, max_length=200, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="billing_core.company")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="billing_core.invoice")),
            ],
            options={
                "db_table": "payments",
                "indexes": [
                    models.Index(fields=["company", "payment_number"], name="payment_company_number_idx"),
                    models.Index(fields=["invoice"], name="payment_invoice_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "payment_number"), name="uq_payment_company_number"),
                    models.CheckConstraint(condition=models.Q(("amount__gte", 0)), name="payment_non_negative_amount"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentAllocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="allocations", to="billing_core.invoice")),
                ("payment", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="allocations", to="billing_core.payment")),
            ],
            options={
                "db_table": "payment_allocations",
                "indexes": [
                    models.Index(fields=["invoice"], name="allocation_invoice_idx"),
                    models.Index(fields=["payment"], name="allocation_payment_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("payment", "invoice"), name="uq_payment_invoice_allocation"),
                    models.CheckConstraint(condition=models.Q(("amount__gte", 0)), name="allocation_non_negative_amount"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentAuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("payment_amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="payment_audit_entries", to="billing_core.invoice")),
                ("payment", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="audit_entries", to="billing_core.payment")),
            ],
            options={
                "db_table": "payment_audit_log",
                "indexes": [
                    models.Index(fields=["payment"], name="payaudit_payment_idx"),
                    models.Index(fields=["invoice"], name="payaudit_invoice_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Receipt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("receipt_number", models.CharField(max_length=64)),
                ("receipt_date", models.DateField()),
                ("receipt_type", models.CharField(choices=[("direct_receipt", "Direct receipt"), ("invoice_payment", "Invoice payment")], default="direct_receipt", max_length=20)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("excess_amount", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("excess_handling", models.CharField(choices=[("pending", "Pending"), ("refunded", "Refunded"), ("credited", "Credited"), ("written_off", "Written off")], default="pending", max_length=20)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="billing_core.company")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="receipts", to="billing_core.invoice")),
                ("payment", models.ForeignKey(on_delete=django.db.models.deletion.DO_NOTHING, related_name="receipts", to="billing_core.payment")),
            ],
            options={
                "db_table": "receipts",
                "indexes": [
                    models.Index(fields=["company", "receipt_number"], name="receipt_company_number_idx"),
                    models.Index(fields=["payment"], name="receipt_payment_idx"),
                    models.Index(fields=["invoice"], name="receipt_invoice_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("company", "receipt_number"), name="uq_receipt_company_number"),
                    models.CheckConstraint(condition=models.Q(("total_amount__gte", 0), ("excess_amount__gte", 0)), name="receipt_non_negative_amounts"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReceiptItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField(blank=True, default="")),
                ("quantity", models.DecimalField(decimal_places=4, default=decimal.Decimal("1"), max_digits=14)),
                ("unit_price", models.DecimalField(decimal_places=4, default=decimal.Decimal("0.00"), max_digits=18)),
                ("tax_percentage", models.DecimalField(decimal_places=4, default=decimal.Decimal("0"), max_digits=7)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("line_total", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("product", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to="billing_core.product")),
                ("receipt", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="items", to="billing_core.receipt")),
            ],
            options={
                "db_table": "receipt_items",
                "ordering": ["sort_order", "id"],
                "indexes": [models.Index(fields=["receipt", "sort_order"], name="rcptitem_receipt_order_idx")],
            },
        ),
        migrations.CreateModel(
            name="CreditNote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("credit_note_number", models.CharField(max_length=64)),
                ("credit_note_date", models.DateField()),
                ("total_amount", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("reason", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="billing_core.company")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="credit_notes", to="billing_core.customer")),
            ],
            options={
                "db_table": "credit_notes",
                "constraints": [models.UniqueConstraint(fields=("company", "credit_note_number"), name="uq_credit_note_company_number")],
            },
        ),
        migrations.CreateModel(
            name="CreditNoteAllocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("allocated_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("credit_note", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="allocations", to="billing_core.creditnote")),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="credit_note_allocations", to="billing_core.invoice")),
            ],
            options={
                "db_table": "credit_note_allocations",
                "indexes": [models.Index(fields=["invoice"], name="cn_alloc_invoice_idx")],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("movement_type", models.CharField(choices=[("IN", "Stock in"), ("OUT", "Stock out"), ("ADJUSTMENT", "Adjustment")], max_length=20)),
                ("reference_type", models.CharField(blank=True, choices=[("INVOICE", "Invoice"), ("DELIVERY_NOTE", "Delivery note"), ("CREDIT_NOTE", "Credit note"), ("PURCHASE", "Purchase"), ("ADJUSTMENT", "Adjustment")], max_length=20, null=True)),
                ("reference_id", models.BigIntegerField(blank=True, null=True)),
                ("quantity", models.DecimalField(decimal_places=4, max_digits=14)),
                ("cost_per_unit", models.DecimalField(blank=True, decimal_places=4, max_digits=18, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("movement_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="billing_core.company")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="stock_movements", to="billing_core.product")),
            ],
            options={
                "db_table": "stock_movements",
                "indexes": [
                    models.Index(fields=["reference_type", "reference_id"], name="stock_reference_idx"),
                    models.Index(fields=["company", "product"], name="stock_company_product_idx"),
                ],
            },
        ),
    ]
