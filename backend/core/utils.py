"""Helpers for reading query parameters and request payloads"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from django.utils.dateparse import parse_date as django_parse_date, parse_datetime

from .exceptions import ValidationError


def parse_date(value, field_name='date'):
    """Parse an ISO date (or datetime) string, returning None for empty values"""
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        parsed = django_parse_date(str(value))
        if parsed is None:
            dt = parse_datetime(str(value))
            parsed = dt.date() if dt else None
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f'Invalid date format for {field_name}')
    return parsed


def parse_decimal(value, field_name='value'):
    if value in (None, ''):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field_name} must be a number')


def parse_list(value):
    """Split a comma-separated query parameter into a list of non-empty values"""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(',')
    return [item.strip() for item in items if str(item).strip()]


def parse_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def apply_filters(filterset_class, params, queryset):
    """Run a django-filter FilterSet and raise ValidationError on bad parameters"""
    filterset = filterset_class(params or {}, queryset=queryset)
    if not filterset.is_valid():
        field, errors = next(iter(filterset.errors.items()))
        raise ValidationError(f'Invalid value for {field}: {errors[0]}')
    return filterset.qs
