import logging

from celery import shared_task
from django.db import OperationalError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.exceptions import InsufficientCreditsError, NoApplicableSlabError
from . import services

logger = logging.getLogger(__name__)

db_retry = retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=4, max=10),
    reraise=True,
)


@shared_task
@db_retry
def expire_trials():
    """Close free trials whose end date has passed."""
    closed = services.expire_trials()
    logger.info(f"[Celery] Expired {closed} trials")
    return {'expired_trials': closed}


@shared_task
@db_retry
def run_due_billing():
    """Bill every mess whose next billing date has arrived."""
    results = []
    for ledger in services.find_due_billing():
        mess = ledger.mess
        try:
            results.append(services.bill_mess(mess))
        except InsufficientCreditsError as e:
            results.append({
                'mess_id': mess.pk,
                'status': 'suspended',
                'required_credits': e.required,
                'available_credits': e.available,
            })
        except NoApplicableSlabError as e:
            logger.error(f"Billing skipped for mess {mess.pk}: {e.detail}")
            results.append({'mess_id': mess.pk, 'status': 'error', 'error': str(e.detail)})

    logger.info(f"[Celery] Billing run processed {len(results)} messes")
    return results
