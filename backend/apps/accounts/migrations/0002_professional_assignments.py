from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ("accounts", "0001_initial"),
        ("camps", "0001_initial"),
        ("groups", "0001_initial"),
        ("incidents", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="professional",
            name="current_event",
            field=models.ForeignKey(
                blank=True,
                help_text="Event the professional is currently working",
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="professionals",
                to="incidents.event",
            ),
        ),
        migrations.AddField(
            model_name="professional",
            name="current_camp",
            field=models.ForeignKey(
                blank=True,
                help_text="Camp within current_event, if any",
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="professionals",
                to="camps.camp",
            ),
        ),
        migrations.AddField(
            model_name="professional",
            name="group",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="members",
                to="groups.group",
            ),
        ),
    ]
