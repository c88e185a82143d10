import logging
from datetime import timedelta

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from apps.audiences.resolver import count_audience
from apps.credits import services as credit_services
from core.exceptions import InsufficientCreditsError
from .models import AdCampaign, AdSettings

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = 'Campaign rejected by admin'


def _validate_policies(ad_settings, title, description, start_date, end_date):
    errors = {}
    if len(title) > ad_settings.max_title_length:
        errors['title'] = f"Title cannot exceed {ad_settings.max_title_length} characters"
    if description and len(description) > ad_settings.max_description_length:
        errors['description'] = f"Description cannot exceed {ad_settings.max_description_length} characters"
    if start_date >= end_date:
        errors['end_date'] = 'End date must be after start date'
    elif end_date - start_date > timedelta(days=ad_settings.max_ad_duration_days):
        errors['end_date'] = f"Campaign cannot run longer than {ad_settings.max_ad_duration_days} days"
    if errors:
        raise ValidationError(errors)


def estimate_cost(campaign_type, audience_filters, ad_settings=None):
    ad_settings = ad_settings or AdSettings.get_current_settings()
    target_user_count = count_audience(audience_filters)
    cost_per_user = ad_settings.cost_per_user(campaign_type)
    return {
        'target_user_count': target_user_count,
        'credit_cost_per_user': cost_per_user,
        'credits_required': target_user_count * cost_per_user,
    }


def create_campaign(mess, campaign_type, title, start_date, end_date, audience_filters=None, **content):
    """Price and store a campaign, then activate it unless approval is required.

    Creation and activation share one transaction, so a failed deduction
    leaves no campaign behind.
    """
    audience_filters = audience_filters or {}
    ad_settings = AdSettings.get_current_settings()
    _validate_policies(ad_settings, title, content.get('description', ''), start_date, end_date)

    cost = estimate_cost(campaign_type, audience_filters, ad_settings)
    if cost['target_user_count'] == 0:
        raise ValidationError({'audience_filters': 'No users match the selected filters'})

    ledger = credit_services.get_ledger(mess)
    if ledger.available_credits < cost['credits_required']:
        raise InsufficientCreditsError(
            required=cost['credits_required'], available=ledger.available_credits
        )

    with transaction.atomic():
        campaign = AdCampaign.objects.create(
            mess=mess,
            campaign_type=campaign_type,
            title=title,
            start_date=start_date,
            end_date=end_date,
            audience_filters=audience_filters,
            status='draft',
            **cost,
            **content,
        )
        if ad_settings.require_approval:
            campaign.status = 'pending_approval'
            campaign.save(update_fields=['status', 'updated_at'])
        else:
            activate_campaign(campaign, ad_settings=ad_settings)

    logger.info(
        f"Campaign {campaign.pk} created for mess {mess.pk}: "
        f"{cost['target_user_count']} users, {cost['credits_required']} credits, status {campaign.status}"
    )
    return campaign


def activate_campaign(campaign, ad_settings=None, approved_by=None):
    if campaign.status not in ('draft', 'pending_approval'):
        raise ValidationError(f"Campaign cannot be activated from {campaign.status}")

    ad_settings = ad_settings or AdSettings.get_current_settings()
    now = timezone.now()

    with transaction.atomic():
        if campaign.credits_required:
            credit_services.deduct_credits(
                campaign.mess,
                campaign.credits_required,
                f"Campaign: {campaign.title}",
                metadata={
                    'campaign_id': campaign.pk,
                    'campaign_type': campaign.campaign_type,
                    'target_user_count': campaign.target_user_count,
                },
            )
        campaign.credits_used = campaign.credits_required
        if campaign.has_messaging:
            campaign.messaging_window_start = now
            campaign.messaging_window_end = now + timedelta(hours=ad_settings.default_messaging_window_hours)
        if approved_by is not None:
            campaign.approved_by = approved_by
            campaign.approved_at = now
        campaign.status = 'active'
        campaign.save()

    logger.info(f"Campaign {campaign.pk} activated; {campaign.credits_used} credits used")
    return campaign


def _locked(campaign):
    return AdCampaign.objects.select_for_update().select_related('mess').get(pk=campaign.pk)


def approve_campaign(campaign, approved_by):
    with transaction.atomic():
        campaign = _locked(campaign)
        if campaign.status != 'pending_approval':
            raise ValidationError('Only campaigns pending approval can be approved')
        activate_campaign(campaign, approved_by=approved_by)
    logger.info(f"Campaign {campaign.pk} approved by {approved_by.pk}")
    return campaign


def reject_campaign(campaign, rejected_by, reason=None):
    with transaction.atomic():
        campaign = _locked(campaign)
        if campaign.status != 'pending_approval':
            raise ValidationError('Only campaigns pending approval can be rejected')
        campaign.status = 'rejected'
        campaign.rejection_reason = reason or DEFAULT_REJECTION_REASON
        campaign.save()
    logger.info(f"Campaign {campaign.pk} rejected by {rejected_by.pk}: {campaign.rejection_reason}")
    return campaign


def pause_campaign(campaign):
    campaign.refresh_status()
    if not campaign.can_transition_to('paused'):
        raise ValidationError(f"Cannot pause a {campaign.status} campaign")
    campaign.status = 'paused'
    campaign.save(update_fields=['status', 'updated_at'])
    logger.info(f"Campaign {campaign.pk} paused")
    return campaign


def resume_campaign(campaign):
    campaign.refresh_status()
    if campaign.status != 'paused':
        raise ValidationError(f"Cannot resume a {campaign.status} campaign")
    campaign.status = 'active'
    campaign.save(update_fields=['status', 'updated_at'])
    logger.info(f"Campaign {campaign.pk} resumed")
    return campaign


def complete_expired_campaigns(now=None):
    completed = AdCampaign.objects.complete_expired(now)
    if completed:
        logger.info(f"Completed {completed} expired campaigns")
    return completed
