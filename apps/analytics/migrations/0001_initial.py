import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('campaigns', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='AdAnalytics',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('event_type', models.CharField(choices=[('impression', 'Impression'), ('click', 'Click'), ('message_sent', 'Message Sent')], max_length=20)),
                ('ad_type', models.CharField(choices=[('ad_card', 'Ad Card'), ('messaging', 'Messaging')], max_length=20)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('timestamp', models.DateTimeField(auto_now_add=True)),
                ('campaign', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='analytics', to='campaigns.adcampaign')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ad_events', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name_plural': 'ad analytics',
                'indexes': [
                    models.Index(fields=['campaign', 'event_type'], name='analytics_campaign_event_idx'),
                    models.Index(fields=['user', 'timestamp'], name='analytics_user_time_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('campaign', 'user', 'event_type'), name='unique_analytics_event_per_user'),
                ],
            },
        ),
    ]
