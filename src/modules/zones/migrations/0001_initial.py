import django.core.validators
import uuid6
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="DeliveryZone",
            fields=[
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
                ("city", models.CharField(max_length=120)),
                ("state", models.CharField(max_length=2)),
                (
                    "delivery_fee",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=10,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0.00"))
                        ],
                    ),
                ),
                ("active", models.BooleanField(default=True)),
            ],
            options={
                "db_table": "delivery_zones",
                "ordering": ["state", "city"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["city", "state"],
                        name="delivery_zones_city_state_uniq",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(delivery_fee__gte=0),
                        name="delivery_zones_fee_non_negative",
                    ),
                ],
            },
        ),
    ]
