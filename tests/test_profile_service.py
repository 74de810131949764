import pytest

from aidatlas.core.errors import NotFoundError
from aidatlas.models.profile import AuthSession, ProfileUpdate, UserRole
from aidatlas.services.profile_service import ensure_profile, get_profile, update_profile
from aidatlas.services.request_repository import PROFILES
from conftest import FakeFirestore

SESSION = AuthSession(user_id="vol-7", email="vol7@example.org", name="Val")


def test_profile_is_keyed_by_user_id():
    db = FakeFirestore()

    profile = ensure_profile(db, SESSION, role=UserRole.VOLUNTEER)

    assert profile.id == "vol-7"
    assert list(db.collection(PROFILES).docs) == ["vol-7"]
    assert get_profile(db, "vol-7").role == UserRole.VOLUNTEER


def test_repeated_sign_in_reuses_the_profile():
    db = FakeFirestore()
    first = ensure_profile(db, SESSION, role=UserRole.VOLUNTEER)

    second = ensure_profile(db, SESSION, role=UserRole.VICTIM)

    assert second.id == first.id
    assert second.role == UserRole.VOLUNTEER
    assert len(db.collection(PROFILES).docs) == 1


def test_update_keeps_untouched_fields():
    db = FakeFirestore()
    ensure_profile(db, SESSION)

    updated = update_profile(db, "vol-7", ProfileUpdate(phone="555-0100"))

    assert updated.phone == "555-0100"
    assert updated.full_name == "Val"


def test_update_without_profile_is_not_found():
    with pytest.raises(NotFoundError):
        update_profile(FakeFirestore(), "ghost", ProfileUpdate(phone="555-0100"))
