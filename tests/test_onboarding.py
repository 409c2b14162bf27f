import asyncio

import pytest

from app.domain.models.notification_log import NotificationLog
from app.domain.models.restaurant import Restaurant
from app.domain.models.user import User
from app.infrastructure.identity_api import IdentityCheckOutcome, IdentityCheckResult
from app.infrastructure.repositories.restaurant_repository import SQLAlchemyRestaurantRepository

IDENTITY_NUMBER = "10000000146"
RESTAURANT = {
    "name": "Lezzet Durağı",
    "email": "info@lezzet.com",
    "phoneNumber": "+905553330003",
    "address": "Kadıköy, İstanbul",
}


@pytest.fixture
def check_user(client, auth_header):
    def _check(data, identity_number=IDENTITY_NUMBER, **extra):
        return client.post(
            "/api/auth/CheckUser",
            headers=auth_header(data),
            json={"identityNumber": identity_number, **extra},
        )
    return _check


@pytest.fixture
def save_restaurant(client, auth_header):
    def _save(data, **overrides):
        return client.post("/api/auth/SaveRestaurant", headers=auth_header(data), json={**RESTAURANT, **overrides})
    return _save


@pytest.fixture
def admin_header(client):
    response = client.post("/api/auth/Login", json={"email": "admin@yemektaxi.com", "password": "admin123"})
    return {"Authorization": f"Bearer {response.json()['data']['tokens']['accessToken']}"}


def verified(set_user_fields, email="a@x.com"):
    set_user_fields(email, email_verified=True, phone_verified=True)


def on_event_loop():
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class TestCheckUser:

    def test_verified_identity_is_stored(self, check_user, signup, identity_verifier, load_user):
        data = signup()

        response = check_user(data)

        assert response.status_code == 200
        assert response.json()["data"]["identityChecked"] is True
        assert identity_verifier.calls == [("Ayse", "Yilmaz", IDENTITY_NUMBER, 1990)]
        user = load_user("a@x.com")
        assert user.identity_number == IDENTITY_NUMBER
        assert user.identity_checked

    def test_request_names_override_profile(self, check_user, signup, identity_verifier):
        data = signup()
        check_user(data, firstName="Ayşe", lastName="Yılmaz", yearOfBirth=1991)
        assert identity_verifier.calls == [("Ayşe", "Yılmaz", IDENTITY_NUMBER, 1991)]

    def test_bad_checksum_skips_remote_call(self, check_user, signup, identity_verifier):
        data = signup()

        response = check_user(data, identity_number="12345678901")

        assert response.status_code == 400
        assert response.json()["errors"] == ["Invalid Turkish identity number format"]
        assert identity_verifier.calls == []

    def test_registry_mismatch(self, check_user, signup, identity_verifier, load_user):
        data = signup()
        identity_verifier.result = IdentityCheckResult(
            False,
            "Identity verification failed - Information does not match official records",
            IdentityCheckOutcome.NOT_VERIFIED,
        )

        response = check_user(data)

        assert response.status_code == 400
        assert response.json()["message"].startswith("Identity verification failed")
        assert not load_user("a@x.com").identity_checked

    def test_registry_timeout_is_upstream_error(self, check_user, signup, identity_verifier):
        data = signup()
        identity_verifier.result = IdentityCheckResult(
            False, "Identity verification timeout - Please try again", IdentityCheckOutcome.TIMEOUT
        )

        response = check_user(data)

        assert response.status_code == 502
        assert response.json()["message"] == "Identity verification timeout - Please try again"

    def test_identity_number_owned_by_another_user(self, check_user, signup, identity_verifier):
        signup(email="b@x.com", phoneNumber="+905552220002", identityNumber=IDENTITY_NUMBER)
        data = signup()

        response = check_user(data)

        assert response.status_code == 400
        assert response.json()["message"] == "Identity number already exists"
        assert identity_verifier.calls == []

    def test_repeat_check(self, check_user, signup, identity_verifier):
        data = signup()
        check_user(data)

        same = check_user(data)
        other = check_user(data, identity_number="19090909018")

        assert same.status_code == 200
        assert other.status_code == 400
        assert len(identity_verifier.calls) == 1


class TestSaveRestaurant:

    def test_requires_verification(self, save_restaurant, signup):
        data = signup()

        response = save_restaurant(data)

        assert response.status_code == 400
        body = response.json()
        assert body["errors"] == ["emailVerification", "phoneVerification"]
        assert body["message"] == "Verification required: emailVerification, phoneVerification"

    def test_supplied_identity_must_be_checked(self, save_restaurant, signup, set_user_fields):
        data = signup(identityNumber=IDENTITY_NUMBER)
        verified(set_user_fields)

        response = save_restaurant(data)

        assert response.status_code == 400
        assert response.json()["errors"] == ["identityCheck"]

    def test_creates_restaurant_and_links_owner(self, save_restaurant, signup, set_user_fields, load_user, email_sender):
        data = signup()
        verified(set_user_fields)

        response = save_restaurant(data)

        assert response.status_code == 201
        restaurant = response.json()["data"]
        assert restaurant["name"] == "Lezzet Durağı"
        assert restaurant["confirmationStatus"] == "Pending"
        user = load_user("a@x.com")
        assert user.restaurant_id == restaurant["id"]
        assert user.is_new_user is False
        assert restaurant["ownerId"] == user.id
        assert email_sender.sent[-1]["subject"] == "YemekTaxi - Kayıt İşleminiz İncelemeye Alındı"

    def test_one_restaurant_per_owner(self, save_restaurant, signup, set_user_fields):
        data = signup()
        verified(set_user_fields)
        save_restaurant(data)

        response = save_restaurant(data, name="Başka Yer", email="b@lezzet.com", phoneNumber="+905554440004")

        assert response.status_code == 400
        assert response.json()["message"] == "User already owns a restaurant"

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({}, "Restaurant name already exists"),
            ({"name": "Başka Yer"}, "Restaurant email already exists"),
            ({"name": "Başka Yer", "email": "b@lezzet.com"}, "Restaurant phone number already exists"),
        ],
    )
    def test_restaurant_uniqueness(self, save_restaurant, signup, set_user_fields, overrides, message):
        first = signup()
        verified(set_user_fields)
        save_restaurant(first)
        second = signup(email="b@x.com", phoneNumber="+905552220002")
        verified(set_user_fields, "b@x.com")

        response = save_restaurant(second, **overrides)

        assert response.status_code == 400
        assert response.json()["message"] == message

    def test_soft_deleted_restaurant_frees_identifiers(self, save_restaurant, signup, set_user_fields, session_factory):
        first = signup()
        verified(set_user_fields)
        save_restaurant(first)
        session = session_factory()
        try:
            session.query(Restaurant).update({"is_deleted": True})
            session.commit()
        finally:
            session.close()
        second = signup(email="b@x.com", phoneNumber="+905552220002")
        verified(set_user_fields, "b@x.com")

        response = save_restaurant(second, phoneNumber="905553330003")

        assert response.status_code == 201
        assert response.json()["data"]["phoneNumber"] == "+905553330003"

    def test_alias_phone_conflicts_with_stored_number(self, save_restaurant, signup, set_user_fields):
        first = signup()
        verified(set_user_fields)
        save_restaurant(first)
        second = signup(email="b@x.com", phoneNumber="+905552220002")
        verified(set_user_fields, "b@x.com")

        response = save_restaurant(second, name="Başka Yer", email="b@lezzet.com", phoneNumber="90 555 333 00 03")

        assert response.status_code == 400
        assert response.json()["message"] == "Restaurant phone number already exists"

    def test_database_work_runs_off_the_event_loop(self, save_restaurant, signup, set_user_fields, monkeypatch):
        data = signup()
        verified(set_user_fields)
        original = SQLAlchemyRestaurantRepository.create_for_owner
        seen = []

        def spy(self, owner, fields):
            seen.append(on_event_loop())
            return original(self, owner, fields)

        monkeypatch.setattr(SQLAlchemyRestaurantRepository, "create_for_owner", spy)

        assert save_restaurant(data).status_code == 201
        assert seen == [False]

    def test_field_validation(self, save_restaurant, signup, set_user_fields):
        data = signup()
        verified(set_user_fields)

        response = save_restaurant(data, name="X", email="nope", phoneNumber="123")

        assert response.status_code == 400
        assert response.json()["errors"] == [
            "Restaurant name must be at least 2 characters",
            "Valid email address is required",
            "Valid Turkish phone number is required",
        ]

    def test_review_email_failure_does_not_undo_restaurant(self, save_restaurant, signup, set_user_fields, email_sender, db):
        data = signup()
        verified(set_user_fields)
        email_sender.fail = True

        response = save_restaurant(data)

        assert response.status_code == 201
        assert db.query(Restaurant).count() == 1
        assert db.query(NotificationLog).filter(NotificationLog.status == "failed").count() == 1


def test_create_for_owner_is_atomic(db, monkeypatch):
    owner = User(
        first_name="Ayse",
        last_name="Yilmaz",
        email="a@x.com",
        phone_number="+905551110001",
        year_of_birth=1990,
        password_hash="x",
    )
    db.add(owner)
    db.commit()
    repository = SQLAlchemyRestaurantRepository(db, Restaurant)

    def failing_commit():
        raise RuntimeError("commit failed")

    monkeypatch.setattr(db, "commit", failing_commit)

    with pytest.raises(RuntimeError):
        repository.create_for_owner(
            owner, {"name": "Lezzet Durağı", "email": "info@lezzet.com", "phone_number": "+905553330003"}
        )

    monkeypatch.undo()
    assert db.query(Restaurant).count() == 0
    db.refresh(owner)
    assert owner.restaurant_id is None
    assert owner.is_new_user is True


class TestConfirmationStatus:

    def url(self, load_user, email="a@x.com"):
        return f"/api/users/{load_user(email).id}/ConfirmationStatus"

    def test_admin_approves_verified_user(self, client, signup, set_user_fields, load_user, admin_header):
        signup()
        verified(set_user_fields)

        response = client.post(self.url(load_user), headers=admin_header, json={"status": "Approved"})

        assert response.status_code == 200
        assert response.json()["data"]["confirmationStatus"] == "Approved"
        login = client.post("/api/auth/Login", json={"email": "a@x.com", "password": "secret123"})
        assert login.status_code == 200

    def test_unverified_user_cannot_be_approved(self, client, signup, load_user, admin_header):
        signup()

        response = client.post(self.url(load_user), headers=admin_header, json={"status": "Approved"})

        assert response.status_code == 400
        assert response.json()["errors"] == ["emailVerification", "phoneVerification"]
        assert load_user("a@x.com").confirmation_status == "Pending"

    def test_unverified_user_can_be_rejected(self, client, signup, load_user, admin_header):
        signup()
        response = client.post(self.url(load_user), headers=admin_header, json={"status": "Rejected"})
        assert response.status_code == 200

    def test_unknown_status(self, client, signup, load_user, admin_header):
        signup()
        response = client.post(self.url(load_user), headers=admin_header, json={"status": "Maybe"})
        assert response.status_code == 400

    def test_unknown_user(self, client, admin_header):
        response = client.post("/api/users/9999/ConfirmationStatus", headers=admin_header, json={"status": "Rejected"})
        assert response.status_code == 404

    def test_non_admin_forbidden(self, client, signup, load_user, auth_header):
        data = signup()
        response = client.post(self.url(load_user), headers=auth_header(data), json={"status": "Approved"})
        assert response.status_code == 403


def test_registration_to_restaurant_flow(client, signup, signup_payload, auth_header, clock, sms_sender, email_sender, load_user):
    user_a = signup()

    duplicate = client.post(
        "/api/auth/Signup", json=signup_payload(phoneNumber="+905552220002", firstName="Mehmet")
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Email already exists"

    headers = auth_header(user_a)
    assert client.post("/api/auth/SendOtpCode", headers=headers).status_code == 200
    clock.advance(5)
    resend = client.post("/api/auth/SendOtpCode", headers=headers)
    assert resend.status_code == 400
    assert 0 < resend.json()["data"]["RemainingTime"] < 180

    clock.advance(180)
    assert client.post("/api/auth/SendOtpCode", headers=headers).status_code == 200
    verify = client.post("/api/auth/OtpVerification", headers=headers, json={"otpCode": sms_sender.last_code()})
    assert verify.status_code == 200
    assert load_user("a@x.com").phone_verified

    early = client.post("/api/auth/SaveRestaurant", headers=headers, json=RESTAURANT)
    assert early.status_code == 400
    assert early.json()["errors"] == ["emailVerification"]

    client.post("/api/auth/SendConfirmationEmail", headers=headers)
    client.post("/api/auth/VerifyEmail", headers=headers, json={"code": email_sender.last_code()})

    saved = client.post("/api/auth/SaveRestaurant", headers=headers, json=RESTAURANT)
    assert saved.status_code == 201
    assert client.get("/api/auth/Me", headers=headers).json()["data"]["restaurantId"] == saved.json()["data"]["id"]
