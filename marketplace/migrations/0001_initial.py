import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models

import marketplace.compliance.domain.models.age_verification


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Vendor",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("handle", models.SlugField(max_length=200, unique=True)),
                ("email", models.EmailField(max_length=254)),
                ("phone", models.CharField(blank=True, max_length=50)),
                (
                    "vendor_type",
                    models.CharField(
                        choices=[("shop", "Shop"), ("brand", "Brand"), ("distributor", "Distributor")],
                        default="shop",
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("active", "Active"),
                            ("suspended", "Suspended"),
                            ("inactive", "Inactive"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "commission_rate",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("20.00"),
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0")),
                            django.core.validators.MaxValueValidator(Decimal("100")),
                        ],
                    ),
                ),
                (
                    "commission_tier",
                    models.CharField(
                        choices=[("bronze", "Bronze"), ("silver", "Silver"), ("gold", "Gold")],
                        default="bronze",
                        max_length=20,
                    ),
                ),
                ("stripe_account_id", models.CharField(blank=True, db_index=True, max_length=255)),
                ("stripe_onboarding_completed", models.BooleanField(default=False)),
                ("business_name", models.CharField(blank=True, max_length=255)),
                ("tax_id", models.CharField(blank=True, max_length=100)),
                ("address_line_1", models.CharField(blank=True, max_length=255)),
                ("address_line_2", models.CharField(blank=True, max_length=255)),
                ("city", models.CharField(blank=True, max_length=100)),
                ("state", models.CharField(blank=True, max_length=100)),
                ("postal_code", models.CharField(blank=True, max_length=20)),
                ("country_code", models.CharField(blank=True, max_length=2)),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "marketplace_vendors",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["vendor_type", "status"], name="vendor_type_status_idx"),
                    models.Index(fields=["status"], name="vendor_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="FulfillmentLocation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("code", models.CharField(max_length=50, unique=True)),
                (
                    "location_type",
                    models.CharField(
                        choices=[
                            ("warehouse", "Warehouse"),
                            ("store", "Store"),
                            ("dropship", "Dropship"),
                            ("distribution_center", "Distribution Center"),
                        ],
                        default="warehouse",
                        max_length=30,
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        blank=True,
                        help_text="Owning vendor; empty for platform hubs",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="fulfillment_locations",
                        to="marketplace.vendor",
                    ),
                ),
                ("address_line_1", models.CharField(blank=True, max_length=255)),
                ("address_line_2", models.CharField(blank=True, max_length=255)),
                ("city", models.CharField(blank=True, max_length=100)),
                ("state", models.CharField(blank=True, max_length=100)),
                ("postal_code", models.CharField(blank=True, max_length=20)),
                ("country_code", models.CharField(default="US", max_length=2)),
                ("latitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("longitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("handles_returns", models.BooleanField(default=False)),
                ("handles_exchanges", models.BooleanField(default=False)),
                ("processing_time_hours", models.PositiveIntegerField(default=24)),
                ("cutoff_time", models.CharField(default="14:00", max_length=5)),
                ("timezone", models.CharField(default="America/New_York", max_length=64)),
                ("shipping_zones", models.JSONField(blank=True, default=list)),
                ("excluded_states", models.JSONField(blank=True, default=list)),
                ("fulfillment_rate", models.DecimalField(decimal_places=3, default=Decimal("0.950"), max_digits=4)),
                ("average_processing_hours", models.PositiveIntegerField(default=24)),
                ("error_rate", models.DecimalField(decimal_places=3, default=Decimal("0.020"), max_digits=4)),
                ("max_orders_per_day", models.PositiveIntegerField(blank=True, null=True)),
                ("current_capacity_percent", models.PositiveSmallIntegerField(default=0)),
                ("handling_fee_cents", models.PositiveIntegerField(default=0)),
                ("pick_pack_fee_cents", models.PositiveIntegerField(default=0)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "marketplace_fulfillment_locations",
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["is_active", "country_code"], name="location_active_country_idx"),
                    models.Index(fields=["vendor"], name="location_vendor_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LocationInventory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("variant_id", models.CharField(max_length=255)),
                ("quantity", models.PositiveIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inventory",
                        to="marketplace.fulfillmentlocation",
                    ),
                ),
            ],
            options={
                "db_table": "marketplace_location_inventory",
                "constraints": [
                    models.UniqueConstraint(fields=("location", "variant_id"), name="unique_location_variant"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RoutingRule",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True)),
                (
                    "rule_type",
                    models.CharField(
                        choices=[
                            ("product", "Product"),
                            ("category", "Category"),
                            ("vendor", "Vendor"),
                            ("customer", "Customer"),
                            ("region", "Region"),
                            ("weight", "Weight"),
                            ("value", "Order Value"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "field_path",
                    models.CharField(
                        help_text="Dotted path, e.g. product.metadata.requires_refrigeration", max_length=255
                    ),
                ),
                (
                    "operator",
                    models.CharField(
                        choices=[
                            ("equals", "Equals"),
                            ("not_equals", "Not Equals"),
                            ("contains", "Contains"),
                            ("greater_than", "Greater Than"),
                            ("less_than", "Less Than"),
                            ("in", "In"),
                            ("not_in", "Not In"),
                        ],
                        default="equals",
                        max_length=20,
                    ),
                ),
                ("value", models.JSONField(blank=True, null=True)),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("require_location", "Require Location"),
                            ("exclude_location", "Exclude Location"),
                            ("prefer_location", "Prefer Location"),
                            ("apply_surcharge", "Apply Surcharge"),
                            ("require_shipping_method", "Require Shipping Method"),
                        ],
                        max_length=30,
                    ),
                ),
                ("action_value", models.JSONField(blank=True, default=dict)),
                ("priority", models.IntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("applies_to_vendor_types", models.JSONField(blank=True, default=list)),
                ("applies_to_product_categories", models.JSONField(blank=True, default=list)),
                ("applies_to_regions", models.JSONField(blank=True, default=list)),
                ("valid_from", models.DateTimeField(blank=True, null=True)),
                ("valid_until", models.DateTimeField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "marketplace_routing_rules",
                "ordering": ["-priority", "name"],
                "indexes": [
                    models.Index(fields=["is_active", "-priority"], name="routing_rule_active_prio_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="VendorOrder",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "order_id",
                    models.CharField(db_index=True, help_text="Host framework order identifier", max_length=255),
                ),
                ("vendor_name", models.CharField(max_length=200)),
                ("vendor_type", models.CharField(max_length=20)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("fulfilled", "Fulfilled"),
                            ("shipped", "Shipped"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12)),
                ("commission_rate", models.DecimalField(decimal_places=2, max_digits=5)),
                ("commission_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("vendor_payout", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("items", models.JSONField(default=list)),
                ("tracking_number", models.CharField(blank=True, max_length=100)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("fulfilled_at", models.DateTimeField(blank=True, null=True)),
                ("shipped_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="vendor_orders",
                        to="marketplace.vendor",
                    ),
                ),
                (
                    "fulfillment_location",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="vendor_orders",
                        to="marketplace.fulfillmentlocation",
                    ),
                ),
            ],
            options={
                "db_table": "marketplace_vendor_orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["vendor", "status"], name="vorder_vendor_status_idx"),
                    models.Index(fields=["vendor", "-created_at"], name="vorder_vendor_created_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("order_id", "vendor"), name="unique_vendor_order_per_order"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payout",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("currency", models.CharField(default="usd", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("paid", "Paid"),
                            ("failed", "Failed"),
                            ("reversed", "Reversed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "commission_total",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Sum of net vendor earnings",
                        max_digits=12,
                    ),
                ),
                ("adjustment_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("commission_count", models.PositiveIntegerField(default=0)),
                ("period_start", models.DateTimeField(blank=True, null=True)),
                ("period_end", models.DateTimeField(blank=True, null=True)),
                ("transfer_id", models.CharField(blank=True, db_index=True, max_length=255)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                ("failure_reason", models.TextField(blank=True)),
                ("reversed_at", models.DateTimeField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts",
                        to="marketplace.vendor",
                    ),
                ),
            ],
            options={
                "db_table": "marketplace_payouts",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["vendor", "-created_at"], name="payout_vendor_created_idx"),
                    models.Index(fields=["status", "-created_at"], name="payout_status_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PayoutAdjustment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "adjustment_type",
                    models.CharField(
                        choices=[
                            ("refund", "Refund"),
                            ("chargeback", "Chargeback"),
                            ("bonus", "Bonus"),
                            ("fee", "Fee"),
                            ("correction", "Correction"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2, help_text="Negative values reduce the payout", max_digits=12
                    ),
                ),
                ("description", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "payout",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="adjustments",
                        to="marketplace.payout",
                    ),
                ),
            ],
            options={
                "db_table": "marketplace_payout_adjustments",
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="CommissionRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "order_id",
                    models.CharField(db_index=True, help_text="Host framework order identifier", max_length=255),
                ),
                ("vendor_type", models.CharField(max_length=20)),
                ("commission_tier", models.CharField(blank=True, max_length=20)),
                ("order_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("commission_rate", models.DecimalField(decimal_places=2, max_digits=5)),
                ("commission_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("net_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("collected", "Collected"),
                            ("processing", "Processing"),
                            ("paid", "Paid"),
                            ("reversed", "Reversed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("collected_at", models.DateTimeField(blank=True, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("reversed_at", models.DateTimeField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="commission_records",
                        to="marketplace.vendor",
                    ),
                ),
                (
                    "vendor_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="commission_records",
                        to="marketplace.vendororder",
                    ),
                ),
                (
                    "payout",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="commission_records",
                        to="marketplace.payout",
                    ),
                ),
            ],
            options={
                "db_table": "marketplace_commission_records",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["vendor", "status"], name="commission_vendor_status_idx"),
                    models.Index(fields=["vendor", "-created_at"], name="commission_vendor_created_idx"),
                    models.Index(fields=["status", "-created_at"], name="commission_status_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="VendorMonthlyVolume",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("year", models.PositiveIntegerField()),
                ("month", models.PositiveSmallIntegerField()),
                ("total_sales", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("order_count", models.PositiveIntegerField(default=0)),
                ("commission_tier", models.CharField(blank=True, max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="monthly_volumes",
                        to="marketplace.vendor",
                    ),
                ),
            ],
            options={
                "db_table": "marketplace_vendor_monthly_volumes",
                "ordering": ["-year", "-month"],
                "constraints": [
                    models.UniqueConstraint(fields=("vendor", "year", "month"), name="unique_vendor_month_volume"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AgeVerificationSession",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("customer_id", models.CharField(db_index=True, max_length=255)),
                (
                    "token",
                    models.CharField(
                        default=marketplace.compliance.domain.models.age_verification.generate_session_token,
                        editable=False,
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("verified", "Verified"),
                            ("failed", "Failed"),
                            ("expired", "Expired"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "method",
                    models.CharField(
                        choices=[
                            ("self_declaration", "Self Declaration"),
                            ("id_document", "ID Document"),
                            ("third_party", "Third Party"),
                        ],
                        default="self_declaration",
                        max_length=30,
                    ),
                ),
                (
                    "age_threshold",
                    models.PositiveSmallIntegerField(
                        default=marketplace.compliance.domain.models.age_verification.default_age_threshold
                    ),
                ),
                ("birth_date", models.DateField(blank=True, null=True)),
                ("verified_age", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "expires_at",
                    models.DateTimeField(
                        default=marketplace.compliance.domain.models.age_verification.default_session_expiry
                    ),
                ),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "marketplace_age_verification_sessions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["customer_id", "status"], name="age_session_customer_idx"),
                    models.Index(fields=["status", "expires_at"], name="age_session_status_exp_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AgeRestrictedProduct",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product_id", models.CharField(max_length=255, unique=True)),
                ("minimum_age", models.PositiveSmallIntegerField(default=21)),
                ("restriction_reason", models.CharField(blank=True, max_length=255)),
                ("requires_id_check", models.BooleanField(default=False)),
                (
                    "restricted_states",
                    models.JSONField(blank=True, default=list, help_text="States where sale is prohibited"),
                ),
                (
                    "compliance_category",
                    models.CharField(
                        choices=[
                            ("alcohol", "Alcohol"),
                            ("tobacco", "Tobacco"),
                            ("cannabis", "Cannabis"),
                            ("firearms", "Firearms"),
                            ("adult", "Adult Content"),
                            ("other", "Other"),
                        ],
                        default="other",
                        max_length=30,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "marketplace_age_restricted_products",
                "ordering": ["product_id"],
            },
        ),
    ]
