import strawberry
from typing import List, Optional
from apps.authentication.graphql.queries import current_user
from apps.campaigns.models import AdCampaign
from apps.credits.models import CreditSlab, MessCredits
from .types import AdCampaignType, CreditSlabType, MessCreditsType


def _campaigns_for(user):
    queryset = AdCampaign.objects.select_related('mess').order_by('-created_at')
    if user.is_platform_admin:
        return queryset
    if hasattr(user, 'mess_profile'):
        return queryset.filter(mess=user.mess_profile)
    return queryset.none()


@strawberry.type
class CampaignQueries:

    @strawberry.field
    def campaigns(self, info: strawberry.Info, status: Optional[str] = None) -> List[AdCampaignType]:
        queryset = _campaigns_for(current_user(info))
        queryset.complete_expired()
        if status:
            queryset = queryset.filter(status=status)
        return list(queryset)

    @strawberry.field
    def campaign(self, info: strawberry.Info, id: int) -> Optional[AdCampaignType]:
        campaign = _campaigns_for(current_user(info)).filter(id=id).first()
        if campaign is not None:
            campaign.refresh_status()
        return campaign

    @strawberry.field
    def credit_slabs(self, info: strawberry.Info) -> List[CreditSlabType]:
        current_user(info)
        return list(CreditSlab.objects.filter(is_active=True).order_by('min_users'))

    @strawberry.field
    def my_credits(self, info: strawberry.Info) -> Optional[MessCreditsType]:
        user = current_user(info)
        if not hasattr(user, 'mess_profile'):
            return None
        return MessCredits.objects.filter(mess=user.mess_profile).first()
