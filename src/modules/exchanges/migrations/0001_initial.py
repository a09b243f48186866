from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import uuid6
from django.db import migrations, models

import modules.exchanges.models


def _base_fields():
    return [
        (
            "id",
            models.UUIDField(
                default=uuid6.uuid7,
                editable=False,
                primary_key=True,
                serialize=False,
            ),
        ),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


DELIVERY_CHOICES = [
    ("pending", "Pending"),
    ("shipped", "Shipped"),
    ("in_transit", "In transit"),
    ("delivered", "Delivered"),
    ("failed", "Failed"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("addresses", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Exchange",
            fields=_base_fields()
            + [
                (
                    "exchange_code",
                    models.CharField(editable=False, max_length=20, unique=True),
                ),
                ("initiator_id", models.CharField(max_length=255)),
                ("receiver_id", models.CharField(max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("cancelled", "Cancelled"),
                            ("in_transit", "In transit"),
                            ("completed", "Completed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        default=modules.exchanges.models.default_payment_method,
                        max_length=20,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("paid", "Paid")],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "price_difference",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12),
                ),
                ("initiator_notes", models.TextField(blank=True, default="")),
                ("receiver_notes", models.TextField(blank=True, default="")),
                ("cancellation_reason", models.TextField(blank=True, default="")),
                (
                    "initiator_delivery_status",
                    models.CharField(
                        choices=DELIVERY_CHOICES, default="pending", max_length=20
                    ),
                ),
                (
                    "receiver_delivery_status",
                    models.CharField(
                        choices=DELIVERY_CHOICES, default="pending", max_length=20
                    ),
                ),
                (
                    "initiator_tracking_number",
                    models.CharField(blank=True, default="", max_length=100),
                ),
                (
                    "receiver_tracking_number",
                    models.CharField(blank=True, default="", max_length=100),
                ),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("shipped_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "initiator_address",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="addresses.address",
                    ),
                ),
                (
                    "receiver_address",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="addresses.address",
                    ),
                ),
            ],
            options={
                "db_table": "exchanges",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["initiator_id", "-created_at"],
                        name="exchanges_initiator_idx",
                    ),
                    models.Index(
                        fields=["receiver_id", "-created_at"],
                        name="exchanges_receiver_idx",
                    ),
                    models.Index(fields=["status"], name="exchanges_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("initiator_id", models.F("receiver_id")), _negated=True
                        ),
                        name="exchanges_distinct_parties",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ExchangeItem",
            fields=_base_fields()
            + [
                (
                    "side",
                    models.CharField(
                        choices=[("initiator", "Initiator"), ("receiver", "Receiver")],
                        max_length=10,
                    ),
                ),
                ("product_id", models.CharField(max_length=64)),
                ("product_name", models.CharField(max_length=255)),
                (
                    "product_image_url",
                    models.URLField(blank=True, default="", max_length=500),
                ),
                ("sku", models.CharField(blank=True, default="", max_length=100)),
                ("variation_details", models.JSONField(blank=True, default=dict)),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "total_price",
                    models.DecimalField(decimal_places=2, editable=False, max_digits=12),
                ),
                ("is_locked", models.BooleanField(default=False)),
                ("locked_at", models.DateTimeField(blank=True, null=True)),
                ("released_at", models.DateTimeField(blank=True, null=True)),
                (
                    "exchange",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="exchanges.exchange",
                    ),
                ),
            ],
            options={
                "db_table": "exchange_items",
                "ordering": ["side", "created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["exchange", "side"], name="exchange_items_side_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 1)),
                        name="exchange_items_quantity_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_price__gte", 0)),
                        name="exchange_items_price_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="InventoryHold",
            fields=_base_fields()
            + [
                ("user_id", models.CharField(max_length=255)),
                ("product_id", models.CharField(max_length=64)),
                (
                    "quantity_held",
                    models.PositiveIntegerField(
                        validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "hold_reason",
                    models.CharField(default="exchange", max_length=50),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("released_at", models.DateTimeField(blank=True, null=True)),
                (
                    "exchange_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="holds",
                        to="exchanges.exchangeitem",
                    ),
                ),
            ],
            options={
                "db_table": "inventory_holds",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["user_id", "is_active"], name="holds_user_active_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_active", True)),
                        fields=("exchange_item",),
                        name="holds_one_active_per_item",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("quantity_held__gte", 1)),
                        name="holds_quantity_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TimelineEntry",
            fields=_base_fields()
            + [
                ("action", models.CharField(max_length=50)),
                ("description", models.TextField()),
                (
                    "actor_id",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                ("actor_name", models.CharField(max_length=255)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "exchange",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="timeline",
                        to="exchanges.exchange",
                    ),
                ),
            ],
            options={
                "db_table": "exchange_timeline",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["exchange", "-created_at"],
                        name="timeline_exchange_created_idx",
                    ),
                ],
            },
        ),
    ]
