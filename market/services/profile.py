# services/profile.py
import re

from django.db import transaction

from market.models import Address, TaskerProfile, User, UserStats
from market.services.errors import InvalidState, NotFound, ValidationFailed, require_auth

PHONE_RE = re.compile(r'^\+?[\d\s\-\(\)]{7,20}$')
PERSONAL_FIELDS = ('first_name', 'last_name', 'phone', 'date_of_birth', 'avatar_url', 'preferred_language')


def update_personal_info(user, data) -> User:
    require_auth(user)
    for name in ('first_name', 'last_name'):
        if name in data and not (data[name] or '').strip():
            label = "First name" if name == 'first_name' else "Last name"
            raise ValidationFailed(f"{label} cannot be empty")
    phone = (data.get('phone') or '').strip()
    if phone and not PHONE_RE.match(phone):
        raise ValidationFailed("Please enter a valid phone number")

    changed = []
    for name in PERSONAL_FIELDS:
        if name in data:
            value = data[name]
            if isinstance(value, str):
                value = value.strip() or None
            if name in ('first_name', 'last_name'):
                value = value or ''
            setattr(user, name, value)
            changed.append(name)
    if changed:
        user.save(update_fields=changed)
    return user


def add_address(user, data) -> Address:
    require_auth(user)
    street, city, region = ((data.get(k) or '').strip() for k in ('street_address', 'city', 'region'))
    if not (street and city and region):
        raise ValidationFailed("Street address, city, and region are required")
    country = (data.get('country') or 'MA').strip().upper()
    if len(country) != 2:
        raise ValidationFailed("Country code must be exactly 2 characters")

    with transaction.atomic():
        # verrou sur l'utilisateur : une seule adresse par défaut
        User.objects.select_for_update().filter(pk=user.pk).first()
        has_addresses = Address.objects.filter(user=user).exists()
        is_default = bool(data.get('is_default')) or not has_addresses
        if is_default:
            Address.objects.filter(user=user, is_default=True).update(is_default=False)
        return Address.objects.create(
            user=user,
            label=data.get('label') or 'home',
            street_address=street,
            city=city,
            region=region,
            postal_code=(data.get('postal_code') or '').strip() or None,
            country=country,
            is_default=is_default,
        )


def delete_address(user, address_id):
    require_auth(user)
    with transaction.atomic():
        try:
            address = Address.objects.select_for_update().get(pk=address_id, user=user)
        except (Address.DoesNotExist, ValueError):
            raise NotFound("Address not found")
        was_default = address.is_default
        address.delete()
        if was_default:
            replacement = Address.objects.filter(user=user).order_by('-created_at').first()
            if replacement:
                replacement.is_default = True
                replacement.save(update_fields=['is_default', 'updated_at'])


def create_tasker_profile(user, data) -> TaskerProfile:
    """Devenir prestataire : crée le profil et bascule le rôle."""
    require_auth(user)
    if TaskerProfile.objects.filter(user=user).exists():
        raise InvalidState("Tasker profile already exists")
    with transaction.atomic():
        profile = TaskerProfile.objects.create(
            user=user,
            experience_level=data.get('experience_level') or 'beginner',
            bio=(data.get('bio') or '').strip() or None,
            identity_document_url=data.get('identity_document_url') or None,
            service_radius_km=data.get('service_radius_km') or 50,
            operation_hours=data.get('operation_hours') or [],
        )
        if user.role == 'customer':
            user.role = 'tasker'
            user.save(update_fields=['role'])
        UserStats.objects.get_or_create(user=user)
    return profile


def validate_operation_hours(slots):
    if not isinstance(slots, list):
        raise ValidationFailed("Invalid availability data format")
    enabled = [slot for slot in slots if isinstance(slot, dict) and slot.get('enabled')]
    if not enabled:
        raise ValidationFailed("Please enable at least one day of availability")
    for slot in enabled:
        start, end = slot.get('startTime'), slot.get('endTime')
        if not start or not end:
            raise ValidationFailed("Please set start and end times for all enabled days")
        if start >= end:
            raise ValidationFailed("End time must be after start time")
    return slots


def update_tasker_profile(user, data) -> TaskerProfile:
    require_auth(user)
    try:
        profile = TaskerProfile.objects.select_related('user').get(user=user)
    except TaskerProfile.DoesNotExist:
        raise NotFound("Tasker profile not found")

    changed = []
    if 'bio' in data:
        bio = (data['bio'] or '').strip()
        if not bio:
            raise ValidationFailed("Bio is required")
        profile.bio = bio
        changed.append('bio')
    if 'service_radius_km' in data:
        radius = data['service_radius_km']
        if radius is None or not 1 <= radius <= 200:
            raise ValidationFailed("Service radius must be between 1 and 200 km")
        profile.service_radius_km = radius
        changed.append('service_radius_km')
    if 'operation_hours' in data:
        profile.operation_hours = validate_operation_hours(data['operation_hours'])
        changed.append('operation_hours')
    for name in ('experience_level', 'is_available', 'identity_document_url'):
        if name in data:
            setattr(profile, name, data[name])
            changed.append(name)
    if changed:
        profile.save(update_fields=[*changed, 'updated_at'])
    return profile


def get_profile_completion(user) -> dict:
    require_auth(user)
    try:
        profile = TaskerProfile.objects.select_related('user').get(user=user)
    except TaskerProfile.DoesNotExist:
        raise NotFound("Tasker profile not found")
    return {
        "completionPercentage": profile.profile_completion(),
        "missingFields": profile.missing_fields(),
    }
