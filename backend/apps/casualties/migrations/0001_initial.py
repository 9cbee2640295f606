from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import uuid6


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("camps", "0001_initial"),
        ("incidents", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Casualty",
            fields=[
                ("id", models.UUIDField(default=uuid6.uuid7, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "color",
                    models.CharField(
                        choices=[
                            ("red", "Red (immediate)"),
                            ("yellow", "Yellow (delayed)"),
                            ("green", "Green (minor)"),
                            ("black", "Black (deceased/expectant)"),
                        ],
                        db_index=True,
                        max_length=10,
                    ),
                ),
                ("breathing", models.BooleanField(blank=True, null=True)),
                ("conscious", models.BooleanField(blank=True, null=True)),
                ("bleeding", models.BooleanField(blank=True, null=True)),
                ("hospital_status", models.CharField(blank=True, max_length=255)),
                ("other_information", models.TextField(blank=True)),
                (
                    "camp",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="casualties",
                        to="camps.camp",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="%(class)s_set",
                        to="incidents.event",
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "casualties",
                "ordering": ["-created_at"],
            },
        ),
    ]
