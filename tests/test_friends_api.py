"""
API tests for friend requests, friendships and user browsing.
"""

import pytest

from feed.models import Post
from friends.models import FriendRequest
from notifications.models import NotificationLedger


@pytest.mark.django_db
class TestFriendRequests:
    def test_send_request_bumps_unseen_count(self, amy, bo, client_for, published, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            response = client_for(amy).post("/api/friends/requests/", {"friend_id": bo.id})

        assert response.status_code == 201
        bo.profile.refresh_from_db()
        assert bo.profile.unseen_requests == 1
        assert (f"user_{bo.id}", {"action": "friend_request", "count": 1}) in published

        listing = client_for(bo).get("/api/friends/requests/")
        assert listing.data["unseen_requests"] == 1
        assert listing.data["requests"][0]["sender"]["id"] == amy.id

    @pytest.mark.parametrize("case", ["self", "duplicate", "reverse", "friends"])
    def test_invalid_requests_are_unprocessable(self, case, amy, bo, client_for, make_friends):
        target = bo
        if case == "self":
            target = amy
        elif case == "duplicate":
            FriendRequest.objects.create(sender=amy, receiver=bo)
        elif case == "reverse":
            FriendRequest.objects.create(sender=bo, receiver=amy)
        elif case == "friends":
            make_friends(amy, bo)

        response = client_for(amy).post("/api/friends/requests/", {"friend_id": target.id})
        assert response.status_code == 422

    def test_unknown_user(self, amy, client_for):
        response = client_for(amy).post("/api/friends/requests/", {"friend_id": 999999})
        assert response.status_code == 404

    def test_accept_makes_friends_and_notifies_both(self, amy, bo, client_for, published, django_capture_on_commit_callbacks):
        client_for(amy).post("/api/friends/requests/", {"friend_id": bo.id})
        request_id = FriendRequest.objects.get().id

        with django_capture_on_commit_callbacks(execute=True):
            response = client_for(bo).post(f"/api/friends/requests/{request_id}/accept/")

        assert response.status_code == 200
        assert amy.profile.is_friends_with(bo)
        assert bo.profile.is_friends_with(amy)
        assert not FriendRequest.objects.exists()
        bo.profile.refresh_from_db()
        assert bo.profile.unseen_requests == 0

        amy_records = NotificationLedger.objects.get(user=amy).records
        bo_records = NotificationLedger.objects.get(user=bo).records
        assert [r["message"] for r in amy_records] == ["You and Bo Kim are now friends"]
        assert [r["message"] for r in bo_records] == ["You and Amy Lee are now friends"]
        assert (f"user_{amy.id}", {"action": "notification", "count": 1}) in published
        assert (f"user_{bo.id}", {"action": "notification", "count": 1}) in published

    def test_only_receiver_can_accept(self, amy, bo, client_for):
        friend_request = FriendRequest.objects.create(sender=amy, receiver=bo)
        response = client_for(amy).post(f"/api/friends/requests/{friend_request.id}/accept/")
        assert response.status_code == 404

    def test_decline(self, amy, bo, client_for):
        client_for(amy).post("/api/friends/requests/", {"friend_id": bo.id})
        request_id = FriendRequest.objects.get().id

        response = client_for(bo).post(f"/api/friends/requests/{request_id}/decline/")

        assert response.status_code == 200
        assert not FriendRequest.objects.exists()
        assert not amy.profile.is_friends_with(bo)

    def test_cancel_floors_unseen_count(self, amy, bo, client_for):
        FriendRequest.objects.create(sender=amy, receiver=bo)

        response = client_for(amy).post("/api/friends/requests/cancel/", {"friend_id": bo.id})

        assert response.status_code == 200
        bo.profile.refresh_from_db()
        assert bo.profile.unseen_requests == 0

    def test_cancel_without_request(self, amy, bo, client_for):
        response = client_for(amy).post("/api/friends/requests/cancel/", {"friend_id": bo.id})
        assert response.status_code == 404

    def test_clear_count(self, amy, bo, client_for):
        client_for(amy).post("/api/friends/requests/", {"friend_id": bo.id})
        response = client_for(bo).post("/api/friends/requests/clear-count/")

        assert response.status_code == 200
        assert response.data["data"] == {"unseen_requests": 0}
        bo.profile.refresh_from_db()
        assert bo.profile.unseen_requests == 0

    def test_unfriend(self, amy, bo, client_for, make_friends):
        make_friends(amy, bo)
        response = client_for(amy).delete(f"/api/friends/{bo.id}/")

        assert response.status_code == 204
        assert not bo.profile.is_friends_with(amy)

    def test_unfriend_stranger(self, amy, bo, client_for):
        assert client_for(amy).delete(f"/api/friends/{bo.id}/").status_code == 422


@pytest.mark.django_db
class TestUsers:
    def test_public_profile(self, amy, bo, cy, api_client, make_friends):
        make_friends(amy, bo)
        response = api_client.get(f"/api/users/{amy.id}/")

        assert response.status_code == 200
        assert response.data["full_name"] == "Amy Lee"
        assert [friend["id"] for friend in response.data["friends"]] == [bo.id]
        assert response.data["friends_count"] == 1
        assert response.data["is_friend"] is False

    def test_profile_shows_pending_request(self, amy, bo, client_for):
        FriendRequest.objects.create(sender=bo, receiver=amy)
        response = client_for(bo).get(f"/api/users/{amy.id}/")
        assert response.data["request_sent"] is True
        assert response.data["request_received"] is False

    def test_friends_list(self, amy, bo, cy, api_client, make_friends):
        make_friends(amy, bo)
        make_friends(amy, cy)
        response = api_client.get(f"/api/users/{amy.id}/friends/")
        assert sorted(friend["id"] for friend in response.data["results"]) == sorted([bo.id, cy.id])

    def test_posts_respect_privacy(self, amy, bo, client_for, make_friends):
        public = Post.objects.create(creator=amy, content="public", privacy=Post.Privacy.PUBLIC)
        friends_only = Post.objects.create(creator=amy, content="friends", privacy=Post.Privacy.FRIENDS)

        stranger_view = client_for(bo).get(f"/api/users/{amy.id}/posts/")
        assert [post["id"] for post in stranger_view.data["results"]] == [public.id]

        make_friends(amy, bo)
        friend_view = client_for(bo).get(f"/api/users/{amy.id}/posts/")
        assert {post["id"] for post in friend_view.data["results"]} == {public.id, friends_only.id}

    def test_search_by_name(self, amy, bo, cy, client_for):
        response = client_for(amy).get("/api/users/", {"search": "kim"})
        assert [user["id"] for user in response.data["results"]] == [bo.id]

    def test_search_requires_login(self, api_client, amy):
        assert api_client.get("/api/users/", {"search": "amy"}).status_code == 401
