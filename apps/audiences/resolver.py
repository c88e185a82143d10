"""Audience resolution for ad campaigns.

Every filter narrows the audience (AND semantics); an empty filter set
matches every active user.
"""
from datetime import date

from django.contrib.auth import get_user_model


def _years_ago(today, years):
    try:
        return today.replace(year=today.year - years)
    except ValueError:  # Feb 29 in a non-leap year
        return today.replace(year=today.year - years, day=28)


def audience_queryset(filters, today=None):
    User = get_user_model()
    filters = filters or {}
    today = today or date.today()
    queryset = User.objects.filter(is_active=True)

    if filters.get('mess_ids'):
        queryset = queryset.filter(
            memberships__mess_id__in=filters['mess_ids'],
            memberships__status='active',
        )
    if filters.get('roles'):
        queryset = queryset.filter(role__in=filters['roles'])
    if filters.get('genders'):
        queryset = queryset.filter(gender__in=filters['genders'])

    age_range = filters.get('age_range') or {}
    if age_range.get('min') is not None:
        queryset = queryset.filter(dob__lte=_years_ago(today, age_range['min']))
    if age_range.get('max') is not None:
        queryset = queryset.filter(dob__gt=_years_ago(today, age_range['max'] + 1))

    if filters.get('membership_status'):
        queryset = queryset.filter(memberships__status__in=filters['membership_status'])

    return queryset.distinct()


def count_audience(filters):
    return audience_queryset(filters).count()


def audience_list(filters, limit=1000):
    return list(audience_queryset(filters).order_by('pk')[:limit])


def user_matches_filters(user, filters):
    return audience_queryset(filters).filter(pk=user.pk).exists()
