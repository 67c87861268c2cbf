"""
Tests for the account lifecycle: creation per role, email verification,
merchant approval, updates and federated accounts.
"""

import re
from datetime import timedelta

import pytest

from app.models.user import AuthProvider, UserRole
from app.schemas.user import AdminCreate, MerchantCreate, MerchantProfileUpdate, UserCreate, UserUpdate
from app.services.auth import verify_password
from app.services.errors import (
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    NotificationError,
    UnauthorizedError,
)
from app.services.users import UserService, verification_defaults
from tests.fakes import RecordingNotifier, make_settings


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def alice(users):
    return users.create(UserCreate(name="Alice", email="alice@example.com", password="secret123"))


@pytest.fixture
def merchant(users):
    return users.create_merchant(
        MerchantCreate(
            name="Bob",
            email="bob@shop.com",
            password="secret123",
            store_name="  Bob's Bikes ",
            location="Lisbon",
        )
    )


def admin_data(**overrides):
    values = {
        "name": "Root",
        "email": "root@corp.com",
        "password": "Str0ng!Pass",
        "admin_secret_key": "admin-key",
    }
    values.update(overrides)
    return AdminCreate(**values)


# =============================================================================
# Creation
# =============================================================================


class TestCreate:
    @pytest.mark.parametrize(
        "role, expected",
        [
            (UserRole.USER, (True, False)),
            (UserRole.MERCHANT, (False, False)),
            (UserRole.ADMIN, (True, True)),
        ],
    )
    def test_verification_defaults_per_role(self, users, role, expected):
        user = users.create(UserCreate(email=f"{role.value.lower()}@example.com", password="secret123", role=role))
        assert (user.is_verified, user.is_email_verified) == expected
        assert verification_defaults(role) == expected

    def test_local_password_is_hashed(self, alice):
        assert alice.hashed_password != "secret123"
        assert verify_password("secret123", alice.hashed_password)

    def test_federated_account_has_no_hash(self, users):
        user = users.create(
            UserCreate(
                email="g@example.com",
                password="ignored-pw",
                provider=AuthProvider.GOOGLE,
                provider_id="g-1",
            )
        )
        assert user.hashed_password is None
        assert user.provider == AuthProvider.GOOGLE

    def test_sends_verification_email(self, alice, notifier, store):
        assert notifier.last.to_email == "alice@example.com"
        assert notifier.last.name == "Alice"
        assert store.find_by_id(alice.id).email_verify_token == notifier.last.token

    def test_admin_gets_no_verification_email(self, users, notifier):
        users.create(UserCreate(email="a@example.com", password="secret123", role=UserRole.ADMIN))
        assert notifier.sent == []

    def test_delivery_failure_keeps_account(self, store, settings, clock):
        users = UserService(store, RecordingNotifier(succeed=False), settings, clock=clock)
        user = users.create(UserCreate(email="carol@example.com", password="secret123"))
        assert store.find_by_id(user.id) is not None

    def test_duplicate_email_conflicts(self, users, alice):
        with pytest.raises(ConflictError):
            users.create(UserCreate(email="alice@example.com", password="other123"))

    def test_email_match_is_exact(self, users, alice):
        other = users.create(UserCreate(email="Alice@example.com", password="other123"))
        assert other.id != alice.id


class TestCreateAdmin:
    def test_valid_key_creates_verified_admin(self, users, notifier):
        admin = users.create_admin(admin_data())
        assert admin.role == UserRole.ADMIN
        assert admin.is_verified and admin.is_email_verified
        assert notifier.sent == []

    def test_wrong_key(self, users):
        with pytest.raises(UnauthorizedError):
            users.create_admin(admin_data(admin_secret_key="guess"))

    def test_unset_key_disables_admin_registration(self, store, notifier, clock):
        users = UserService(store, notifier, make_settings(admin_registration_key=""), clock=clock)
        with pytest.raises(UnauthorizedError):
            users.create_admin(admin_data(admin_secret_key=""))

    def test_domain_allowlist(self, store, notifier, clock):
        users = UserService(store, notifier, make_settings(admin_allowed_domains="corp.com, Ops.io"), clock=clock)
        with pytest.raises(UnauthorizedError):
            users.create_admin(admin_data(email="root@gmail.com"))
        assert users.create_admin(admin_data(email="root@ops.io")).role == UserRole.ADMIN

    def test_existing_email(self, users, alice):
        with pytest.raises(UnauthorizedError):
            users.create_admin(admin_data(email="alice@example.com"))

    def test_weak_password_rejected(self):
        with pytest.raises(ValueError):
            admin_data(password="weakpassword")


class TestCreateMerchant:
    def test_profile_created_and_pending(self, merchant, notifier):
        assert merchant.role == UserRole.MERCHANT
        assert not merchant.is_verified
        assert merchant.merchant_profile.store_name == "Bob's Bikes"
        assert merchant.merchant_profile.location == "Lisbon"
        assert notifier.last.to_email == "bob@shop.com"

    def test_blank_store_name_rejected(self):
        with pytest.raises(ValueError):
            MerchantCreate(email="x@shop.com", password="secret123", store_name="   ", location="Porto")

    def test_duplicate_email_creates_no_profile(self, users, merchant, store):
        with pytest.raises(ConflictError):
            users.create_merchant(
                MerchantCreate(email="bob@shop.com", password="secret123", store_name="Other", location="Porto")
            )
        assert len(store.accounts) == 1


# =============================================================================
# Email verification
# =============================================================================


class TestEmailVerification:
    def test_token_and_expiry(self, users, alice, store, clock):
        users.send_verification_email("alice@example.com")
        user = store.find_by_id(alice.id)
        assert re.fullmatch(r"[0-9a-f]{64}", user.email_verify_token)
        assert user.email_verify_expires == clock.now + timedelta(hours=24)

    def test_unknown_email(self, users):
        with pytest.raises(NotFoundError):
            users.send_verification_email("nobody@example.com")

    def test_delivery_failure_raises_but_keeps_token(self, store, settings, clock):
        notifier = RecordingNotifier()
        users = UserService(store, notifier, settings, clock=clock)
        user = users.create(UserCreate(email="dan@example.com", password="secret123"))
        notifier.succeed = False
        with pytest.raises(NotificationError):
            users.send_verification_email("dan@example.com")
        assert store.find_by_id(user.id).email_verify_token == notifier.last.token

    def test_verify_sets_flag_and_clears_token(self, users, alice, notifier):
        user = users.verify_email(notifier.last.token)
        assert user.id == alice.id
        assert user.is_email_verified
        assert user.email_verify_token is None
        assert user.email_verify_expires is None

    def test_token_is_single_use(self, users, alice, notifier):
        token = notifier.last.token
        users.verify_email(token)
        with pytest.raises(InvalidTokenError):
            users.verify_email(token)

    def test_resend_invalidates_previous_token(self, users, alice, notifier):
        old = notifier.last.token
        users.send_verification_email("alice@example.com")
        with pytest.raises(InvalidTokenError):
            users.verify_email(old)
        assert users.verify_email(notifier.last.token).is_email_verified

    def test_expired_token(self, users, alice, notifier, clock):
        clock.advance(hours=24)
        with pytest.raises(InvalidTokenError):
            users.verify_email(notifier.last.token)

    def test_token_valid_just_before_expiry(self, users, alice, notifier, clock):
        clock.advance(hours=23, minutes=59)
        assert users.verify_email(notifier.last.token).is_email_verified

    @pytest.mark.parametrize("token", ["", "not-a-token"])
    def test_unknown_token(self, users, alice, token):
        with pytest.raises(InvalidTokenError):
            users.verify_email(token)

    def test_email_verification_does_not_approve_merchant(self, users, merchant, notifier):
        user = users.verify_email(notifier.last.token)
        assert user.is_email_verified
        assert not user.is_verified


# =============================================================================
# Business verification
# =============================================================================


class TestVerifyUser:
    def test_approves_merchant(self, users, merchant):
        assert users.verify_user(merchant.id).is_verified
        assert users.verification_status(merchant.id)["meets_verification_requirement"]

    def test_idempotent(self, users, merchant):
        users.verify_user(merchant.id)
        assert users.verify_user(merchant.id).is_verified

    def test_unknown_user(self, users):
        with pytest.raises(NotFoundError):
            users.verify_user("missing")

    def test_pending_merchant_status(self, users, merchant):
        status = users.verification_status(merchant.id)
        assert status["role"] == UserRole.MERCHANT
        assert not status["meets_verification_requirement"]


# =============================================================================
# Lookup and mutation
# =============================================================================


class TestLookup:
    def test_find_one_missing(self, users):
        with pytest.raises(NotFoundError):
            users.find_one("missing")

    def test_find_merchant_rejects_other_roles(self, users, alice):
        with pytest.raises(NotFoundError):
            users.find_merchant(alice.id)

    def test_find_all_by_role(self, users, alice, merchant):
        assert [u.id for u in users.find_all()] == [alice.id, merchant.id]
        assert [u.id for u in users.find_all(role=UserRole.MERCHANT)] == [merchant.id]


class TestUpdate:
    def test_partial_update(self, users, alice):
        user = users.update(alice.id, UserUpdate(name="Alicia"))
        assert user.name == "Alicia"
        assert user.email == "alice@example.com"

    def test_password_is_rehashed(self, users, alice):
        user = users.update(alice.id, UserUpdate(password="newsecret"))
        assert verify_password("newsecret", user.hashed_password)
        assert not verify_password("secret123", user.hashed_password)

    def test_promote_user_to_admin(self, users, alice):
        assert users.update(alice.id, UserUpdate(role=UserRole.ADMIN)).role == UserRole.ADMIN

    def test_role_change_into_merchant_conflicts(self, users, alice):
        with pytest.raises(ConflictError):
            users.update(alice.id, UserUpdate(role=UserRole.MERCHANT))

    def test_role_change_out_of_merchant_conflicts(self, users, merchant):
        with pytest.raises(ConflictError):
            users.update(merchant.id, UserUpdate(role=UserRole.USER))

    def test_email_taken(self, users, alice, merchant):
        with pytest.raises(ConflictError):
            users.update(alice.id, UserUpdate(email="bob@shop.com"))

    def test_unknown_user(self, users):
        with pytest.raises(NotFoundError):
            users.update("missing", UserUpdate(name="x"))

    def test_merchant_profile_update(self, users, merchant):
        user = users.update_merchant_profile(merchant.id, MerchantProfileUpdate(phone_number="+351 900"))
        assert user.merchant_profile.phone_number == "+351 900"
        assert user.merchant_profile.store_name == "Bob's Bikes"

    def test_remove(self, users, alice):
        users.remove(alice.id)
        with pytest.raises(NotFoundError):
            users.find_one(alice.id)


# =============================================================================
# Federated accounts
# =============================================================================


class TestSocialUser:
    def test_creates_user_without_credentials(self, users, notifier):
        user = users.find_or_create_social_user("g@example.com", "Gina", AuthProvider.GOOGLE, "g-1")
        assert user.role == UserRole.USER
        assert user.provider == AuthProvider.GOOGLE
        assert user.provider_id == "g-1"
        assert user.hashed_password is None
        assert (user.is_verified, user.is_email_verified) == (True, False)
        assert notifier.sent == []

    def test_same_identity_is_idempotent(self, users, store):
        first = users.find_or_create_social_user("g@example.com", "Gina", AuthProvider.GOOGLE, "g-1")
        again = users.find_or_create_social_user("g@example.com", "Gina", AuthProvider.GOOGLE, "g-1")
        assert again.id == first.id
        assert len(store.accounts) == 1

    def test_relinks_local_account(self, users, alice):
        user = users.find_or_create_social_user("alice@example.com", "Alice", AuthProvider.GOOGLE, "g-9")
        assert user.id == alice.id
        assert user.provider == AuthProvider.GOOGLE
        assert user.provider_id == "g-9"
        assert user.hashed_password is None
        assert user.role == UserRole.USER

    def test_relink_disabled(self, store, notifier, clock):
        users = UserService(store, notifier, make_settings(oauth_relink_existing_accounts=False), clock=clock)
        users.create(UserCreate(email="alice@example.com", password="secret123"))
        with pytest.raises(UnauthorizedError):
            users.find_or_create_social_user("alice@example.com", "Alice", AuthProvider.GOOGLE, "g-9")

    def test_admin_account_is_never_relinked(self, users, store):
        admin = users.create_admin(admin_data())
        with pytest.raises(UnauthorizedError):
            users.find_or_create_social_user("root@corp.com", "Root", AuthProvider.GOOGLE, "g-7")
        user = store.find_by_id(admin.id)
        assert user.provider == AuthProvider.LOCAL
        assert verify_password("Str0ng!Pass", user.hashed_password)

    def test_relinked_merchant_keeps_role_and_profile(self, users, merchant):
        user = users.find_or_create_social_user("bob@shop.com", "Bob", AuthProvider.GOOGLE, "g-8")
        assert user.id == merchant.id
        assert user.role == UserRole.MERCHANT
        assert user.merchant_profile.store_name == "Bob's Bikes"
        assert user.hashed_password is None
