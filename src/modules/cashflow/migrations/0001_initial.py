import django.db.models.deletion
import uuid6
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CashFlowEntry",
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
                (
                    "type",
                    models.CharField(
                        choices=[("INCOME", "Entrada"), ("EXPENSE", "Saída")],
                        max_length=10,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("description", models.CharField(max_length=255)),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("PIX", "PIX"),
                            ("CREDIT_CARD", "Cartão de crédito"),
                            ("DEBIT_CARD", "Cartão de débito"),
                            ("CASH", "Dinheiro"),
                            ("BOLETO", "Boleto"),
                        ],
                        max_length=20,
                        null=True,
                    ),
                ),
                ("payment_date", models.DateTimeField()),
                (
                    "installment_number",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="cash_flow_entries",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "db_table": "cash_flow_entries",
                "ordering": ["-payment_date", "-created_at"],
                "indexes": [
                    models.Index(
                        fields=["-payment_date"], name="cash_flow_payment_date_idx"
                    ),
                    models.Index(fields=["type"], name="cash_flow_type_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(
                            ("installment_number__isnull", True),
                            ("order__isnull", False),
                        ),
                        fields=("order",),
                        name="cash_flow_one_entry_per_order",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(
                            ("installment_number__isnull", False),
                            ("order__isnull", False),
                        ),
                        fields=("order", "installment_number"),
                        name="cash_flow_one_entry_per_installment",
                    ),
                ],
            },
        ),
    ]
