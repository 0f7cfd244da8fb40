from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("cashflow", "0001_initial"),
    ]

    operations = [
        migrations.RemoveConstraint(
            model_name="cashflowentry",
            name="cash_flow_one_entry_per_order",
        ),
        migrations.AddConstraint(
            model_name="cashflowentry",
            constraint=models.UniqueConstraint(
                condition=models.Q(
                    order__isnull=False, installment_number__isnull=True
                )
                & ~models.Q(payment_method="BOLETO"),
                fields=("order",),
                name="cash_flow_one_entry_per_order",
            ),
        ),
    ]
