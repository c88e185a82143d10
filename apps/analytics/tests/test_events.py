from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.analytics import events
from apps.analytics.models import AdAnalytics
from apps.campaigns import services
from apps.campaigns.models import AdCampaign
from apps.credits.services import initialize_mess_credits
from apps.messes.models import MessProfile

User = get_user_model()


class AnalyticsFixtureMixin:
    def setUp(self):
        self.owner = User.objects.create_user(
            username='owner', email='owner@mess.test', password='pass12345', role='mess-owner'
        )
        self.mess = MessProfile.objects.create(owner=self.owner, name='Sai Mess')
        initialize_mess_credits(self.mess, start_trial=False, initial_credits=100)
        self.viewer = User.objects.create_user(
            username='viewer', email='viewer@mess.test', password='pass12345', gender='female'
        )
        self.other = User.objects.create_user(
            username='other', email='other@mess.test', password='pass12345', gender='male'
        )
        now = timezone.now()
        self.campaign = services.create_campaign(
            self.mess, campaign_type='both', title='Festive thali',
            start_date=now - timedelta(minutes=1), end_date=now + timedelta(days=2),
            audience_filters={'roles': ['user']},
        )


class RecordEventTest(AnalyticsFixtureMixin, TestCase):
    def test_impression_recorded_once(self):
        self.assertIsNotNone(events.record_impression(self.campaign, self.viewer))
        self.assertIsNone(events.record_impression(self.campaign, self.viewer))

        self.assertEqual(
            AdAnalytics.objects.filter(campaign=self.campaign, user=self.viewer, event_type='impression').count(), 1
        )
        self.campaign.refresh_from_db()
        self.assertEqual(self.campaign.impressions, 1)
        self.assertEqual(self.campaign.actual_reach, 1)

    def test_counters_per_event_type(self):
        events.record_impression(self.campaign, self.viewer)
        events.record_click(self.campaign, self.viewer)
        events.record_click(self.campaign, self.viewer)
        events.record_message_sent(self.campaign, self.other)
        events.record_impression(self.campaign, self.other)

        self.campaign.refresh_from_db()
        self.assertEqual(
            (self.campaign.impressions, self.campaign.clicks, self.campaign.messages_sent, self.campaign.actual_reach),
            (2, 1, 1, 2)
        )

        stats = events.get_campaign_analytics(self.campaign)
        self.assertEqual(stats['impressions'], 2)
        self.assertEqual(stats['unique_clicks'], 1)
        self.assertEqual(stats['messages_sent'], 1)
        self.assertEqual(stats['click_through_rate'], 50.0)

    def test_active_ad_card_skips_seen_campaigns(self):
        self.assertEqual(events.get_active_ad_card(self.viewer), self.campaign)
        events.record_impression(self.campaign, self.viewer)
        self.assertIsNone(events.get_active_ad_card(self.viewer))
        self.assertEqual(events.get_active_ad_card(self.other), self.campaign)

    def test_active_ad_card_respects_filters_and_window(self):
        AdCampaign.objects.filter(pk=self.campaign.pk).update(audience_filters={'genders': ['male']})
        self.assertIsNone(events.get_active_ad_card(self.viewer))
        self.assertEqual(events.get_active_ad_card(self.other), self.campaign)
        self.assertIsNone(events.get_active_ad_card(self.other, now=timezone.now() + timedelta(days=3)))


class AnalyticsAPITest(AnalyticsFixtureMixin, APITestCase):
    def test_record_impression_endpoint(self):
        self.client.force_authenticate(self.viewer)
        url = reverse('record_impression', args=[self.campaign.pk])
        self.assertEqual(self.client.post(url).status_code, status.HTTP_201_CREATED)
        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['recorded'])

    def test_ad_card_endpoint(self):
        self.client.force_authenticate(self.viewer)
        response = self.client.get(reverse('active_ad_card'))
        self.assertEqual(response.data['ad_card']['campaign_id'], self.campaign.pk)
        self.assertEqual(response.data['ad_card']['call_to_action'], 'Learn More')
        self.assertEqual(response.data['delay_seconds'], 3)

    def test_closed_campaign_rejects_events(self):
        AdCampaign.objects.filter(pk=self.campaign.pk).update(end_date=timezone.now() - timedelta(minutes=1))
        self.client.force_authenticate(self.viewer)
        response = self.client.post(reverse('record_click', args=[self.campaign.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(AdCampaign.objects.get(pk=self.campaign.pk).status, 'completed')

    def test_messaging_campaign_rejects_ad_card_events(self):
        now = timezone.now()
        campaign = services.create_campaign(
            self.mess, campaign_type='messaging', title='Weekend specials',
            start_date=now - timedelta(minutes=1), end_date=now + timedelta(days=2),
            audience_filters={'roles': ['user']},
        )
        self.client.force_authenticate(self.viewer)
        response = self.client.post(reverse('record_impression', args=[campaign.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(reverse('record_message_sent', args=[campaign.pk]))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(AdAnalytics.objects.filter(campaign=campaign, event_type='impression').exists())

    def test_analytics_visible_to_owner_only(self):
        url = reverse('campaign_analytics', args=[self.campaign.pk])
        self.client.force_authenticate(self.viewer)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)
        self.client.force_authenticate(self.owner)
        self.assertEqual(self.client.get(url).data['impressions'], 0)
