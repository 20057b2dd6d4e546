"""
Add price tiers and the sold-quantity counter.

Creates:
    - ProductPrice: ticket price tiers with quantity_sold
Alters:
    - Attendee: optional product_price reference
"""

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ProductPrice",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "label",
                    models.CharField(help_text="Tier name shown at checkout", max_length=255),
                ),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        default=0,
                        help_text="Price per ticket (major units)",
                        max_digits=14,
                    ),
                ),
                (
                    "quantity_available",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Capacity of this tier (null for unlimited)",
                        null=True,
                    ),
                ),
                (
                    "quantity_sold",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Tickets sold on completed orders",
                    ),
                ),
            ],
            options={
                "verbose_name": "Product price",
                "verbose_name_plural": "Product prices",
                "ordering": ["label"],
            },
        ),
        migrations.AddField(
            model_name="attendee",
            name="product_price",
            field=models.ForeignKey(
                blank=True,
                help_text="Price tier this ticket was issued against",
                null=True,
                on_delete=django.db.models.deletion.PROTECT,
                related_name="attendees",
                to="orders.productprice",
            ),
        ),
    ]
