"""Credit slab resolution and maintenance.

Slabs are looked up fresh on every call. When stored ranges overlap, the
slab with the lowest ``min_users`` wins.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from core.exceptions import NoApplicableSlabError
from .models import CreditSlab

logger = logging.getLogger(__name__)


def resolve(user_count):
    slab = (
        CreditSlab.objects
        .filter(is_active=True, min_users__lte=user_count, max_users__gte=user_count)
        .order_by('min_users', 'pk')
        .first()
    )
    if slab is None:
        raise NoApplicableSlabError(user_count)
    return slab


def calculate_credits(user_count):
    return user_count * resolve(user_count).credits_per_user


def quote(user_count):
    slab = resolve(user_count)
    return {
        'user_count': user_count,
        'slab': slab,
        'credits_per_user': slab.credits_per_user,
        'total_credits': user_count * slab.credits_per_user,
    }


def _check_overlap(min_users, max_users, exclude_pk=None):
    overlapping = CreditSlab.objects.filter(
        is_active=True,
        min_users__lte=max_users,
        max_users__gte=min_users,
    )
    if exclude_pk is not None:
        overlapping = overlapping.exclude(pk=exclude_pk)
    existing = overlapping.first()
    if existing is not None:
        raise ValidationError(
            f"Credit slab range overlaps with existing slab {existing.min_users}-{existing.max_users}"
        )


def create_slab(min_users, max_users, credits_per_user, created_by=None):
    slab = CreditSlab(
        min_users=min_users,
        max_users=max_users,
        credits_per_user=credits_per_user,
        created_by=created_by,
        updated_by=created_by,
    )
    slab.full_clean()
    with transaction.atomic():
        _check_overlap(min_users, max_users)
        slab.save()
    logger.info(f"Credit slab created: {slab}")
    return slab


def update_slab(slab, updated_by=None, **changes):
    for field in ('min_users', 'max_users', 'credits_per_user', 'is_active'):
        if field in changes:
            setattr(slab, field, changes[field])
    slab.updated_by = updated_by
    slab.full_clean()
    with transaction.atomic():
        if slab.is_active:
            _check_overlap(slab.min_users, slab.max_users, exclude_pk=slab.pk)
        slab.save()
    logger.info(f"Credit slab {slab.pk} updated: {slab}")
    return slab


def deactivate_slab(slab, updated_by=None):
    slab.is_active = False
    slab.updated_by = updated_by
    slab.save(update_fields=['is_active', 'updated_by', 'updated_at'])
    logger.info(f"Credit slab {slab.pk} deactivated")
    return slab
