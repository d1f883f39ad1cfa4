"""
Shared fixtures for the socialnet test suite.
"""

import pytest
from django.contrib.auth.models import User
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken


@pytest.fixture(autouse=True)
def in_memory_channel_layer(settings):
    settings.CHANNEL_LAYERS = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}
    settings.CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}


@pytest.fixture
def make_user(db):
    """Create active users with a profile and an empty notification ledger."""
    counter = {"n": 0}

    def _make_user(first_name="Amy", last_name="Lee", password="Str0ng!Passw0rd"):
        counter["n"] += 1
        email = f"{first_name.lower()}.{last_name.lower()}{counter['n']}@example.com"
        return User.objects.create_user(
            username=email,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
        )

    return _make_user


@pytest.fixture
def amy(make_user):
    return make_user("Amy", "Lee")


@pytest.fixture
def bo(make_user):
    return make_user("Bo", "Kim")


@pytest.fixture
def cy(make_user):
    return make_user("Cy", "Park")


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    """Return an APIClient authenticated as the given user with a real JWT."""

    def _client_for(user):
        client = APIClient()
        token = RefreshToken.for_user(user).access_token
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        return client

    return _client_for


@pytest.fixture
def make_friends():
    def _make_friends(first, second):
        first.profile.friends.add(second.profile)

    return _make_friends


@pytest.fixture
def published(monkeypatch):
    """Capture every realtime publish instead of sending it to the channel layer."""
    events = []

    def _publish(self, topic, payload):
        events.append((topic, payload))

    monkeypatch.setattr("notifications.broadcast.ChannelsBroadcaster.publish", _publish)
    return events
