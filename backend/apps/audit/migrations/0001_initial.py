from django.db import migrations, models
import django.core.serializers.json
import uuid6


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.UUIDField(default=uuid6.uuid7, editable=False, primary_key=True, serialize=False)),
                (
                    "entity_type",
                    models.CharField(
                        choices=[
                            ("event", "Event"),
                            ("camp", "Camp"),
                            ("casualty", "Casualty"),
                            ("task", "Task"),
                            ("group", "Group"),
                            ("resource", "Resource request"),
                        ],
                        max_length=20,
                    ),
                ),
                ("entity_id", models.CharField(max_length=64)),
                (
                    "event_id",
                    models.CharField(
                        blank=True, db_index=True, help_text="Owning event, for per-incident history", max_length=64
                    ),
                ),
                (
                    "action",
                    models.CharField(db_index=True, help_text="Action tag, e.g. 'casualty.updated'", max_length=100),
                ),
                (
                    "actor_id",
                    models.CharField(db_index=True, help_text="Professional ID, or 'system'", max_length=64),
                ),
                ("actor_email", models.EmailField(blank=True, help_text="Denormalized for display", max_length=254)),
                ("actor_role", models.CharField(blank=True, max_length=32)),
                (
                    "correlation_id",
                    models.CharField(blank=True, db_index=True, help_text="Request trace ID", max_length=64),
                ),
                (
                    "changes",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                        help_text="Field-level changes: {'field': {'from': ..., 'to': ...}}",
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                        help_text="Additional context (counts, reasons)",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["entity_type", "entity_id", "created_at"], name="audit_entity_history_idx")
                ],
            },
        ),
    ]
