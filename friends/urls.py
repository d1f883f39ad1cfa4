from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import FriendRequestViewSet, UnfriendView

router = SimpleRouter()
router.register(r"requests", FriendRequestViewSet, basename="friend-requests")

urlpatterns = [
    path("", include(router.urls)),
    path("<int:user_id>/", UnfriendView.as_view(), name="unfriend"),
]
