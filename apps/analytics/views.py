from django.core.exceptions import ValidationError
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.campaigns.models import AdCampaign, AdSettings
from . import events


def _running_campaign(campaign_id):
    campaign = get_object_or_404(AdCampaign, pk=campaign_id)
    campaign.refresh_status()
    if campaign.status != 'active':
        raise ValidationError(f"Campaign is {campaign.status}")
    return campaign


def _ad_card_campaign(campaign_id):
    campaign = _running_campaign(campaign_id)
    if not campaign.has_ad_card:
        raise ValidationError('Campaign has no ad card component')
    return campaign


def _record_response(event):
    if event is None:
        return Response({'recorded': False}, status=status.HTTP_200_OK)
    return Response({'recorded': True, 'event_id': event.pk}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def active_ad_card(request):
    """Next ad card to show the requesting user, if any."""
    campaign = events.get_active_ad_card(request.user)
    if campaign is None:
        return Response({'ad_card': None})

    ad_settings = AdSettings.get_current_settings()
    return Response({
        'ad_card': {
            'campaign_id': campaign.pk,
            'headline': campaign.title,
            'description': campaign.description,
            'image_url': campaign.image_url,
            'video_url': campaign.video_url,
            'link_url': campaign.link_url,
            'call_to_action': campaign.call_to_action or 'Learn More',
        },
        'delay_seconds': ad_settings.ad_card_delay_seconds,
        'display_duration': ad_settings.default_ad_card_display_duration,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def record_impression(request, campaign_id):
    campaign = _ad_card_campaign(campaign_id)
    return _record_response(events.record_impression(campaign, request.user, request.data.get('metadata')))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def record_click(request, campaign_id):
    campaign = _ad_card_campaign(campaign_id)
    return _record_response(events.record_click(campaign, request.user, request.data.get('metadata')))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def record_message_sent(request, campaign_id):
    campaign = _running_campaign(campaign_id)
    if not campaign.has_messaging:
        raise ValidationError('Campaign has no messaging component')
    return _record_response(events.record_message_sent(campaign, request.user, request.data.get('metadata')))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def campaign_analytics(request, campaign_id):
    campaign = get_object_or_404(AdCampaign.objects.select_related('mess'), pk=campaign_id)
    user = request.user
    if not user.is_platform_admin and campaign.mess.owner_id != user.pk:
        raise PermissionDenied('You can only view analytics for your own campaigns.')
    campaign.refresh_status()
    return Response(events.get_campaign_analytics(campaign))
