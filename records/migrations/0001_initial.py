from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="VersionedRecord",
            fields=[
                ("id", models.IntegerField(default=1, primary_key=True, serialize=False)),
                ("field1", models.TextField()),
                ("field2", models.TextField()),
                ("field3", models.TextField()),
                ("field4", models.TextField()),
                ("version", models.PositiveIntegerField(default=1)),
            ],
        ),
    ]
