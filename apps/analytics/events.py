# apps/analytics/events.py
import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, F
from django.utils import timezone

from apps.audiences.resolver import user_matches_filters
from apps.campaigns.models import AdCampaign
from core.exceptions import DuplicateAnalyticsEventError
from .models import AdAnalytics

logger = logging.getLogger(__name__)


def _insert_event(campaign, user, event_type, ad_type, metadata):
    """Insert the event row and bump the campaign counters in one savepoint."""
    counter = AdAnalytics.COUNTER_FIELDS[event_type]
    with transaction.atomic():
        first_contact = not AdAnalytics.objects.filter(campaign=campaign, user=user).exists()
        try:
            with transaction.atomic():
                event = AdAnalytics.objects.create(
                    campaign=campaign,
                    user=user,
                    event_type=event_type,
                    ad_type=ad_type,
                    metadata=metadata or {},
                )
        except IntegrityError:
            raise DuplicateAnalyticsEventError(campaign.pk, user.pk, event_type)

        updates = {counter: F(counter) + 1}
        if first_contact:
            updates['actual_reach'] = F('actual_reach') + 1
        AdCampaign.objects.filter(pk=campaign.pk).update(**updates)
    return event


def _record(campaign, user, event_type, ad_type, metadata=None):
    """Record an event once per (campaign, user, event type).

    Returns the new row, or None when the event was already recorded.
    """
    try:
        return _insert_event(campaign, user, event_type, ad_type, metadata)
    except DuplicateAnalyticsEventError as e:
        logger.warning(f"Ignored duplicate analytics event: {e}")
        return None


def record_impression(campaign, user, metadata=None):
    return _record(campaign, user, 'impression', 'ad_card', metadata)


def record_click(campaign, user, metadata=None):
    return _record(campaign, user, 'click', 'ad_card', metadata)


def record_message_sent(campaign, user, metadata=None):
    return _record(campaign, user, 'message_sent', 'messaging', metadata)


def get_campaign_analytics(campaign):
    rows = (
        AdAnalytics.objects.filter(campaign=campaign)
        .values('event_type')
        .annotate(count=Count('id'), unique_users=Count('user', distinct=True))
    )
    by_type = {row['event_type']: row for row in rows}

    def stat(event_type, key):
        return by_type.get(event_type, {}).get(key, 0)

    impressions = stat('impression', 'count')
    clicks = stat('click', 'count')
    return {
        'campaign_id': campaign.pk,
        'impressions': impressions,
        'clicks': clicks,
        'messages_sent': stat('message_sent', 'count'),
        'unique_impressions': stat('impression', 'unique_users'),
        'unique_clicks': stat('click', 'unique_users'),
        'click_through_rate': round(clicks / impressions * 100, 2) if impressions else 0.0,
    }


def get_active_ad_card(user, now=None):
    """Newest running ad-card campaign targeted at ``user`` that they have not seen."""
    now = now or timezone.now()
    seen = AdAnalytics.objects.filter(user=user, event_type='impression').values('campaign_id')
    campaigns = (
        AdCampaign.objects.running(now)
        .filter(campaign_type__in=['ad_card', 'both'])
        .exclude(pk__in=seen)
        .order_by('-created_at')
    )
    for campaign in campaigns:
        if user_matches_filters(user, campaign.audience_filters):
            return campaign
    return None
