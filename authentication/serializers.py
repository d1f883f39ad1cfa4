import re
from datetime import date

from django.conf import settings
from django.contrib.auth.hashers import check_password
from django.contrib.auth.models import User
from django.db import transaction
from django.utils.translation import gettext as _
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.token_blacklist.models import OutstandingToken

from .models import UserProfile


class PasswordValidator:
    @staticmethod
    def validate_password_strength(password):
        has_length = len(password) >= 10
        has_upper = re.search(r"[A-Z]", password)
        has_lower = re.search(r"[a-z]", password)
        has_digit = re.search(r"\d", password)
        has_special = re.search(r"[!@#$%^&*()_+=\-{}[\]|\\:;\"'<,>.?/]", password)

        if not (has_length and has_upper and has_lower and has_digit and has_special):
            raise serializers.ValidationError(
                _("Password must contain at least 10 characters, including an uppercase letter, a lowercase letter, a number, and a special character.")
            )


def age_on(born, today):
    return today.year - born.year - ((today.month, today.day) < (born.month, born.day))


class SignupSerializer(serializers.ModelSerializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    email = serializers.EmailField(required=True)
    password = serializers.CharField(write_only=True, required=True, validators=[PasswordValidator.validate_password_strength])
    gender = serializers.ChoiceField(choices=UserProfile.GENDER_CHOICES)
    date_of_birth = serializers.DateField()

    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'email', 'password', 'gender', 'date_of_birth']

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError(_("This email is already in use."))
        return value.lower()

    def validate_date_of_birth(self, value):
        if age_on(value, date.today()) < settings.MINIMUM_SIGNUP_AGE:
            raise serializers.ValidationError(
                _("You must be at least %(age)s years old to sign up.") % {'age': settings.MINIMUM_SIGNUP_AGE}
            )
        return value

    @transaction.atomic
    def create(self, validated_data):
        gender = validated_data.pop('gender')
        date_of_birth = validated_data.pop('date_of_birth')
        email = validated_data['email']

        # Email doubles as the username
        user = User.objects.create_user(
            username=email,
            email=email,
            password=validated_data['password'],
            first_name=validated_data['first_name'].strip(),
            last_name=validated_data['last_name'].strip(),
        )
        profile = user.profile
        profile.gender = gender
        profile.date_of_birth = date_of_birth
        profile.save(update_fields=['gender', 'date_of_birth', 'updated_at'])
        return user


class MyTokenObtainPairSerializer(TokenObtainPairSerializer):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['email'] = serializers.EmailField()
        if 'username' in self.fields:
            del self.fields['username']

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['full_name'] = f"{user.first_name} {user.last_name}".strip()
        return token

    def validate(self, attrs):
        email = attrs.get('email')
        password = attrs.get('password')

        if not email:
            raise serializers.ValidationError(_('Email address is required to log in.'), code='authorization')

        try:
            user = User.objects.get(email__iexact=email)
        except User.DoesNotExist:
            raise AuthenticationFailed(_("No account found with this email. Please check your email and try again."))

        if not user.check_password(password):
            raise AuthenticationFailed(_("The password you entered is incorrect. Please try again."))

        if not user.is_active:
            raise AuthenticationFailed(_("This account is inactive."))

        self.user = user
        refresh = self.get_token(self.user)
        return {
            'id': self.user.id,
            'email': self.user.email,
            'full_name': f"{self.user.first_name} {self.user.last_name}".strip(),
            'token': str(refresh.access_token),
            'refresh_token': str(refresh)
        }


class ProfileSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source='user.id', read_only=True)
    first_name = serializers.CharField(source='user.first_name', read_only=True)
    last_name = serializers.CharField(source='user.last_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    profile_picture = serializers.CharField(source='profile_picture_url', read_only=True)
    banner_image = serializers.CharField(source='banner_image_url', read_only=True)

    class Meta:
        model = UserProfile
        fields = [
            'id', 'first_name', 'last_name', 'email', 'gender', 'date_of_birth',
            'occupation', 'about', 'profile_picture', 'banner_image',
            'unseen_requests', 'unseen_messages',
        ]


class UnifiedProfileUpdateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150, required=False)
    last_name = serializers.CharField(max_length=150, required=False)
    email = serializers.EmailField(required=False)
    occupation = serializers.CharField(max_length=150, required=False, allow_blank=True)
    about = serializers.CharField(required=False, allow_blank=True)
    new_password = serializers.CharField(style={'input_type': 'password'}, write_only=True, required=False, validators=[PasswordValidator.validate_password_strength])

    def validate_email(self, value):
        user = self.context['request'].user
        if User.objects.filter(email__iexact=value).exclude(pk=user.pk).exists():
            raise serializers.ValidationError(_("This email address is already in use by another account."))
        return value.lower()

    def validate(self, data):
        if 'new_password' in data:
            user = self.context['request'].user
            if check_password(data['new_password'], user.password):
                raise serializers.ValidationError({"new_password": _("New password cannot be the same as the old password.")})
        return data

    def update(self, instance, validated_data):
        user = instance.user
        profile = instance

        user.first_name = validated_data.get('first_name', user.first_name).strip()
        user.last_name = validated_data.get('last_name', user.last_name).strip()

        new_email = validated_data.get('email')
        if new_email and new_email != user.email.lower():
            user.email = new_email
            user.username = new_email

        if 'new_password' in validated_data:
            user.set_password(validated_data['new_password'])
            OutstandingToken.objects.filter(user=user).delete()

        user.save()

        profile.occupation = validated_data.get('occupation', profile.occupation)
        profile.about = validated_data.get('about', profile.about)
        profile.save()
        return profile


class ProfileImageSerializer(serializers.Serializer):
    IMAGE_TYPES = (('profile', 'Profile picture'), ('banner', 'Banner image'))

    type = serializers.ChoiceField(choices=IMAGE_TYPES)
    image = serializers.ImageField()

    def update(self, instance, validated_data):
        if validated_data['type'] == 'profile':
            instance.profile_picture = validated_data['image']
        else:
            instance.banner_image = validated_data['image']
        instance.save()
        return instance


class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()


class PasswordResetFormSerializer(serializers.Serializer):
    new_password = serializers.CharField(write_only=True, required=True, validators=[PasswordValidator.validate_password_strength])
    confirm_password = serializers.CharField(write_only=True, required=True)

    def validate(self, data):
        if data['new_password'] != data['confirm_password']:
            raise serializers.ValidationError(_("The two password fields didn't match."))
        return data
