import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("ledger_core", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="invoice",
            name="reversal_entry",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.PROTECT,
                related_name="+",
                to="ledger_core.journalentry",
            ),
        ),
    ]
