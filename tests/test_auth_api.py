"""
API tests for signup, login, profile and password reset.
"""

from datetime import date, timedelta
from unittest.mock import patch

import pytest
from django.contrib.auth.models import User
from django.core import mail
from django.utils import timezone

from authentication.models import AuthToken
from authentication.tasks import send_password_reset_email_task

STRONG_PASSWORD = "Str0ng!Passw0rd"


def signup_payload(**overrides):
    payload = {
        "first_name": "Dee",
        "last_name": "Ray",
        "email": "dee@example.com",
        "password": STRONG_PASSWORD,
        "gender": "female",
        "date_of_birth": "1990-05-01",
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
class TestSignup:
    def test_creates_user_profile_and_ledger(self, api_client):
        response = api_client.post("/api/auth/signup/", signup_payload())

        assert response.status_code == 201
        user = User.objects.get(email="dee@example.com")
        assert user.profile.gender == "female"
        assert user.profile.date_of_birth == date(1990, 5, 1)
        assert user.notification_ledger.count == 0

    def test_rejects_minors(self, api_client):
        too_young = date.today() - timedelta(days=365 * 17)
        response = api_client.post("/api/auth/signup/", signup_payload(date_of_birth=too_young.isoformat()))
        assert response.status_code == 400
        assert "date_of_birth" in response.data["data"]["errors"]

    @pytest.mark.parametrize("password", ["short1!A", "alllowercase1!", "NoDigitsHere!!", "NoSpecial12345"])
    def test_rejects_weak_passwords(self, api_client, password):
        response = api_client.post("/api/auth/signup/", signup_payload(password=password))
        assert response.status_code == 400

    def test_rejects_duplicate_email(self, api_client, amy):
        response = api_client.post("/api/auth/signup/", signup_payload(email=amy.email.upper()))
        assert response.status_code == 400


@pytest.mark.django_db
class TestLogin:
    def test_login_returns_tokens(self, api_client, amy):
        response = api_client.post("/api/auth/login/", {"email": amy.email, "password": STRONG_PASSWORD})

        assert response.status_code == 200
        assert response.data["id"] == amy.id
        assert response.data["full_name"] == "Amy Lee"
        assert response.data["token"]
        assert response.data["refresh_token"]

    def test_wrong_password(self, api_client, amy):
        response = api_client.post("/api/auth/login/", {"email": amy.email, "password": "nope"})
        assert response.status_code == 401

    def test_token_authenticates_requests(self, api_client, amy):
        token = api_client.post("/api/auth/login/", {"email": amy.email, "password": STRONG_PASSWORD}).data["token"]
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        assert api_client.get("/api/auth/profile/").status_code == 200


@pytest.mark.django_db
class TestProfile:
    def test_get_profile(self, amy, client_for):
        response = client_for(amy).get("/api/auth/profile/")
        assert response.data["email"] == amy.email
        assert response.data["profile_picture"].endswith("placeholder-profile-image.jpeg")

    def test_update_profile(self, amy, client_for):
        client = client_for(amy)
        client.get("/api/auth/profile/")

        response = client.put("/api/auth/profile/", {"first_name": "Amelia", "occupation": "Pilot"})

        assert response.status_code == 200
        assert response.data["first_name"] == "Amelia"
        assert client.get("/api/auth/profile/").data["occupation"] == "Pilot"

    def test_change_password(self, amy, client_for):
        response = client_for(amy).put("/api/auth/profile/", {"new_password": "N3w!Password99"})
        assert response.status_code == 200
        amy.refresh_from_db()
        assert amy.check_password("N3w!Password99")


@pytest.mark.django_db
class TestPasswordReset:
    def test_request_queues_email_for_known_user(self, api_client, amy):
        with patch("authentication.views.send_password_reset_email_task.delay") as delay:
            response = api_client.post("/api/auth/password-reset/", {"email": amy.email})

        assert response.status_code == 200
        token = AuthToken.objects.get(user=amy)
        delay.assert_called_once()
        user_id, reset_url = delay.call_args.args
        assert user_id == amy.id
        assert str(token.token) in reset_url

    def test_request_for_unknown_email_still_succeeds(self, api_client):
        with patch("authentication.views.send_password_reset_email_task.delay") as delay:
            response = api_client.post("/api/auth/password-reset/", {"email": "ghost@example.com"})
        assert response.status_code == 200
        delay.assert_not_called()

    def test_confirm_resets_password_once(self, api_client, amy):
        token = AuthToken.objects.create(user=amy)
        url = f"/api/auth/password-reset/confirm/{token.token}/"

        assert api_client.get(url).status_code == 200
        payload = {"new_password": "An0ther!Secret", "confirm_password": "An0ther!Secret"}
        assert api_client.post(url, payload).status_code == 200

        amy.refresh_from_db()
        assert amy.check_password("An0ther!Secret")
        assert api_client.get(url).status_code == 400

    def test_expired_token(self, api_client, amy):
        token = AuthToken.objects.create(user=amy, expires_at=timezone.now() - timedelta(minutes=1))
        assert api_client.get(f"/api/auth/password-reset/confirm/{token.token}/").status_code == 400

    def test_mismatched_passwords(self, api_client, amy):
        token = AuthToken.objects.create(user=amy)
        payload = {"new_password": "An0ther!Secret", "confirm_password": "Different!99x"}
        response = api_client.post(f"/api/auth/password-reset/confirm/{token.token}/", payload)
        assert response.status_code == 400

    def test_email_task_sends_mail(self, amy, settings):
        settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
        send_password_reset_email_task(amy.id, "http://reset")
        assert len(mail.outbox) == 1
        assert "http://reset" in mail.outbox[0].body
        assert mail.outbox[0].to == [amy.email]
