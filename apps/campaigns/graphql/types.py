import strawberry
import strawberry_django
from strawberry import auto
from apps.campaigns.models import AdCampaign
from apps.credits.models import CreditSlab, MessCredits


@strawberry_django.type(AdCampaign)
class AdCampaignType:
    id: auto
    campaign_type: auto
    title: auto
    description: auto
    status: auto
    start_date: auto
    end_date: auto
    target_user_count: auto
    credits_required: auto
    credits_used: auto
    credit_cost_per_user: auto
    impressions: auto
    clicks: auto
    messages_sent: auto
    rejection_reason: auto


@strawberry_django.type(CreditSlab)
class CreditSlabType:
    id: auto
    min_users: auto
    max_users: auto
    credits_per_user: auto


@strawberry_django.type(MessCredits)
class MessCreditsType:
    total_credits: auto
    used_credits: auto
    status: auto
    is_trial_active: auto
    trial_end_date: auto
    next_billing_date: auto

    @strawberry.field
    def available_credits(self) -> int:
        return self.available_credits
