import pytest

from market.models import Address, TaskerProfile, User
from market.services import profile
from market.services.errors import InvalidState, NotFound, ValidationFailed

pytestmark = pytest.mark.django_db

WEEKDAYS = [
    {"day": "monday", "enabled": True, "startTime": "08:00", "endTime": "17:00"},
    {"day": "sunday", "enabled": False},
]


def _address(user, **extra):
    data = {"street_address": "5 avenue Hassan II", "city": "Rabat", "region": "Rabat-Salé-Kénitra", **extra}
    return profile.add_address(user, data)


def test_update_personal_info(customer):
    user = profile.update_personal_info(customer, {"first_name": " Salma ", "phone": "+212 600-000000"})

    user.refresh_from_db()
    assert user.first_name == "Salma"
    assert user.phone == "+212 600-000000"


@pytest.mark.parametrize("data, message", [
    ({"first_name": "  "}, "First name cannot be empty"),
    ({"last_name": ""}, "Last name cannot be empty"),
    ({"phone": "abc"}, "Please enter a valid phone number"),
])
def test_personal_info_validation(customer, data, message):
    with pytest.raises(ValidationFailed) as exc:
        profile.update_personal_info(customer, data)
    assert exc.value.message == message


def test_first_address_becomes_default(customer):
    first = _address(customer)
    second = _address(customer, label="work")

    assert first.is_default is True
    assert second.is_default is False


def test_only_one_default_address(customer):
    first = _address(customer)
    second = _address(customer, is_default=True)

    first.refresh_from_db()
    assert first.is_default is False
    assert second.is_default is True
    assert Address.objects.filter(user=customer, is_default=True).count() == 1


def test_address_validation(customer):
    with pytest.raises(ValidationFailed):
        _address(customer, city="  ")
    with pytest.raises(ValidationFailed) as exc:
        _address(customer, country="MAR")
    assert exc.value.message == "Country code must be exactly 2 characters"


def test_deleting_default_promotes_another(customer):
    first = _address(customer)
    second = _address(customer, label="work")

    profile.delete_address(customer, first.pk)

    second.refresh_from_db()
    assert second.is_default is True
    with pytest.raises(NotFound):
        profile.delete_address(customer, first.pk)


def test_becoming_a_tasker(customer):
    created = profile.create_tasker_profile(customer, {"bio": "Bricoleur depuis 10 ans", "service_radius_km": 25})

    assert created.service_radius_km == 25
    assert User.objects.get(pk=customer.pk).role == 'tasker'
    with pytest.raises(InvalidState):
        profile.create_tasker_profile(customer, {})


def test_both_role_is_kept(db):
    from market.tests.conftest import make_user
    user = make_user("both@example.com", role='both')

    profile.create_tasker_profile(user, {})

    assert User.objects.get(pk=user.pk).role == 'both'


@pytest.mark.parametrize("slots, message", [
    ("lundi", "Invalid availability data format"),
    ([{"day": "monday", "enabled": False}], "Please enable at least one day of availability"),
    ([{"day": "monday", "enabled": True, "startTime": "09:00"}],
     "Please set start and end times for all enabled days"),
    ([{"day": "monday", "enabled": True, "startTime": "18:00", "endTime": "09:00"}],
     "End time must be after start time"),
])
def test_operation_hours_validation(slots, message):
    with pytest.raises(ValidationFailed) as exc:
        profile.validate_operation_hours(slots)
    assert exc.value.message == message


def test_update_tasker_profile(tasker):
    TaskerProfile.objects.create(user=tasker)

    updated = profile.update_tasker_profile(tasker, {"bio": "Plombier", "operation_hours": WEEKDAYS,
                                                     "is_available": False})

    assert updated.bio == "Plombier"
    assert updated.operation_hours == WEEKDAYS
    assert updated.is_available is False
    with pytest.raises(ValidationFailed):
        profile.update_tasker_profile(tasker, {"service_radius_km": 500})


def test_profile_completion(tasker):
    TaskerProfile.objects.create(user=tasker, bio="Plombier", operation_hours=WEEKDAYS)

    result = profile.get_profile_completion(tasker)

    # nom, bio, rayon, disponibilités : 4 sur 7
    assert result["completionPercentage"] == 57
    missing = {field["id"] for field in result["missingFields"]}
    assert missing == {"profile_photo", "identity_verification", "addresses"}


def test_profile_completion_without_profile(customer):
    with pytest.raises(NotFound):
        profile.get_profile_completion(customer)


# ---- API ----

def test_api_addresses(customer_client):
    created = customer_client.post("/api/profile/addresses/", {
        "street_address": "3 rue Atlas", "city": "Fès", "region": "Fès-Meknès", "country": "ma",
    }, format="json")
    assert created.status_code == 201
    assert created.data["address"]["country"] == "MA"
    assert created.data["address"]["is_default"] is True

    listing = customer_client.get("/api/profile/addresses/")
    assert len(listing.data["addresses"]) == 1

    missing = customer_client.post("/api/profile/addresses/", {"city": "Fès"}, format="json")
    assert missing.status_code == 400
    assert missing.data["error"] == "Street address, city, and region are required"


def test_api_tasker_profile(customer_client):
    assert customer_client.get("/api/profile/tasker/").status_code == 404

    created = customer_client.post("/api/profile/tasker/", {"bio": "Jardinier", "experience_level": "expert"},
                                   format="json")
    assert created.status_code == 201
    assert created.data["profile"]["experience_level"] == "expert"

    completion = customer_client.get("/api/profile/completion/")
    assert completion.status_code == 200
    assert "completionPercentage" in completion.data


def test_api_personal_info(customer_client):
    resp = customer_client.patch("/api/profile/", {"preferred_language": "ar"}, format="json")
    assert resp.status_code == 200
    assert resp.data["user"]["preferred_language"] == "ar"
