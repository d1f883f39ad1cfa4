from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView
from .views import (
    SignupAPIView,
    MyTokenObtainPairView,
    PasswordResetInitiateAPIView,
    PasswordResetConfirmView,
    ProfileView,
    ProfileImageView,
)

urlpatterns = [
    path('signup/', SignupAPIView.as_view(), name='signup'),
    path('login/', MyTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('login/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('password-reset/', PasswordResetInitiateAPIView.as_view(), name='password_reset_initiate'),
    path('password-reset/confirm/<uuid:token>/', PasswordResetConfirmView.as_view(), name='password_reset_confirm'),
    path('profile/', ProfileView.as_view(), name='profile'),
    path('profile/image/', ProfileImageView.as_view(), name='profile_image'),
]
