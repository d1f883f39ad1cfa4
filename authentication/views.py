import logging

from django.conf import settings
from django.contrib.auth.models import User
from django.core.cache import cache
from django.urls import reverse
from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.token_blacklist.models import OutstandingToken

from .models import AuthToken, UserProfile
from .serializers import (
    MyTokenObtainPairSerializer,
    PasswordResetFormSerializer,
    PasswordResetRequestSerializer,
    ProfileImageSerializer,
    ProfileSerializer,
    SignupSerializer,
    UnifiedProfileUpdateSerializer,
)
from .tasks import send_password_reset_email_task

logger = logging.getLogger(__name__)


def _profile_cache_key(user_id):
    return f"user_profile_{user_id}"


class MyTokenObtainPairView(APIView):
    permission_classes = [AllowAny]
    serializer_class = MyTokenObtainPairSerializer
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login'

    def post(self, request, *args, **kwargs):
        serializer = self.serializer_class(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        return Response(serializer.validated_data, status=status.HTTP_200_OK)


class SignupAPIView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"New account created for user {user.id}")
        return Response(
            {"id": user.id, "email": user.email, "message": _("User created successfully. You can now log in.")},
            status=status.HTTP_201_CREATED
        )


class ProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        cache_key = _profile_cache_key(request.user.id)
        cached_profile = cache.get(cache_key)
        if cached_profile:
            return Response(cached_profile, status=status.HTTP_200_OK)

        profile, _created = UserProfile.objects.get_or_create(user=request.user)
        response_data = ProfileSerializer(profile).data
        cache.set(cache_key, response_data, timeout=3600)
        return Response(response_data, status=status.HTTP_200_OK)

    def put(self, request):
        profile, _created = UserProfile.objects.get_or_create(user=request.user)
        serializer = UnifiedProfileUpdateSerializer(instance=profile, data=request.data, context={'request': request}, partial=True)
        serializer.is_valid(raise_exception=True)
        profile = serializer.save()
        cache.delete(_profile_cache_key(request.user.id))
        return Response(ProfileSerializer(profile).data, status=status.HTTP_200_OK)


class ProfileImageView(APIView):
    permission_classes = [IsAuthenticated]

    def patch(self, request):
        profile, _created = UserProfile.objects.get_or_create(user=request.user)
        serializer = ProfileImageSerializer(instance=profile, data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = serializer.save()
        cache.delete(_profile_cache_key(request.user.id))
        return Response(ProfileSerializer(profile).data, status=status.HTTP_200_OK)


class PasswordResetInitiateAPIView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'password_reset'

    def post(self, request):
        serializer = PasswordResetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email']
        user = User.objects.filter(email__iexact=email).first()
        if user is not None:
            AuthToken.objects.filter(user=user, token_type='password_reset').delete()
            token = AuthToken.objects.create(user=user, token_type='password_reset')
            reset_path = reverse('password_reset_confirm', kwargs={'token': token.token})
            reset_url = f"{settings.BACKEND_BASE_URL}{reset_path}"
            send_password_reset_email_task.delay(user.id, reset_url)
        return Response({'message': _('If an account exists, a reset link has been sent.')}, status=status.HTTP_200_OK)


class PasswordResetConfirmView(APIView):
    permission_classes = [AllowAny]
    invalid_message = _('This password reset link is invalid or has expired.')

    def _valid_token(self, token):
        token_obj = AuthToken.objects.filter(token=token, token_type="password_reset", is_used=False).first()
        if token_obj is None or not token_obj.is_valid():
            return None
        return token_obj

    def get(self, request, token=None):
        if self._valid_token(token) is None:
            return Response({'detail': self.invalid_message}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'token': str(token), 'valid': True}, status=status.HTTP_200_OK)

    def post(self, request, token=None):
        token_obj = self._valid_token(token)
        if token_obj is None:
            return Response({'detail': self.invalid_message}, status=status.HTTP_400_BAD_REQUEST)

        serializer = PasswordResetFormSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = token_obj.user
        user.set_password(serializer.validated_data['new_password'])
        user.save()
        token_obj.is_used = True
        token_obj.save()
        OutstandingToken.objects.filter(user=user).delete()
        logger.info(f"Password reset completed for user {user.id}")
        return Response({'message': _('Your password has been changed. You can now log in with your new password.')}, status=status.HTTP_200_OK)
