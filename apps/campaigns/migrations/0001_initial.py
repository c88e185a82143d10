import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('messes', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='AdSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('credit_price_per_user_ad_card', models.PositiveIntegerField(default=1)),
                ('credit_price_per_user_messaging', models.PositiveIntegerField(default=2)),
                ('ad_card_delay_seconds', models.PositiveIntegerField(default=3)),
                ('default_ad_card_display_duration', models.PositiveIntegerField(default=5)),
                ('default_messaging_window_hours', models.PositiveIntegerField(default=24)),
                ('max_ad_duration_days', models.PositiveIntegerField(default=30)),
                ('max_title_length', models.PositiveIntegerField(default=100)),
                ('max_description_length', models.PositiveIntegerField(default=500)),
                ('require_approval', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name_plural': 'ad settings',
            },
        ),
        migrations.CreateModel(
            name='AdCampaign',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('campaign_type', models.CharField(choices=[('ad_card', 'Ad Card'), ('messaging', 'Messaging'), ('both', 'Both')], max_length=20)),
                ('title', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True, max_length=500)),
                ('image_url', models.URLField(blank=True)),
                ('video_url', models.URLField(blank=True)),
                ('link_url', models.URLField(blank=True)),
                ('call_to_action', models.CharField(blank=True, max_length=50)),
                ('audience_filters', models.JSONField(blank=True, default=dict)),
                ('target_user_count', models.PositiveIntegerField(default=0)),
                ('actual_reach', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('pending_approval', 'Pending Approval'), ('active', 'Active'), ('paused', 'Paused'), ('completed', 'Completed'), ('rejected', 'Rejected')], default='draft', max_length=20)),
                ('start_date', models.DateTimeField()),
                ('end_date', models.DateTimeField()),
                ('credits_required', models.PositiveIntegerField()),
                ('credits_used', models.PositiveIntegerField(default=0)),
                ('credit_cost_per_user', models.PositiveIntegerField()),
                ('messaging_window_start', models.DateTimeField(blank=True, null=True)),
                ('messaging_window_end', models.DateTimeField(blank=True, null=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('impressions', models.PositiveIntegerField(default=0)),
                ('clicks', models.PositiveIntegerField(default=0)),
                ('messages_sent', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('mess', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='campaigns', to='messes.messprofile')),
            ],
            options={
                'indexes': [
                    models.Index(fields=['mess', 'status'], name='campaign_mess_status_idx'),
                    models.Index(fields=['status', 'start_date', 'end_date'], name='campaign_status_window_idx'),
                    models.Index(fields=['campaign_type', 'status'], name='campaign_type_status_idx'),
                ],
            },
        ),
    ]
