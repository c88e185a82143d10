import logging

from django.db import transaction

from apps.credits.models import FreeTrialSettings
from apps.credits.services import initialize_mess_credits
from .models import MessProfile

logger = logging.getLogger(__name__)


def register_mess(owner, name):
    """Create a mess for ``owner`` and open its credit ledger."""
    trial_settings = FreeTrialSettings.get_current_settings()
    with transaction.atomic():
        mess = MessProfile.objects.create(owner=owner, name=name)
        initialize_mess_credits(
            mess,
            start_trial=trial_settings.auto_activate_on_registration
        )
    logger.info(f"Mess {mess.pk} '{name}' registered for {owner.email}")
    return mess
