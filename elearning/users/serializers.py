"""
E-Learning User Serializers

Serializers:
- CustomTokenObtainPairSerializer: JWT token carrying username and platform role
- UserSerializer: Current user data including the role

Author: DSP Development Team
Version: 1.0.0
"""

from typing import Dict, Any
from django.contrib.auth.models import User
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.tokens import RefreshToken

from .models import Profile, user_has_admin_role


def role_for(user: User) -> str:
    """Platform role of a user, ADMIN for staff and superusers."""
    return Profile.Role.ADMIN if user_has_admin_role(user) else Profile.Role.STUDENT


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    JWT token serializer adding the username and the platform role to the
    token payload so the frontend can route admins and students without an
    extra request.
    """

    @classmethod
    def get_token(cls, user: User) -> RefreshToken:
        token = super().get_token(user)
        token["username"] = user.username
        token["role"] = role_for(user)
        return token

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        data = super().validate(attrs)
        data.update(
            {
                "user_id": self.user.id,
                "username": self.user.username,
                "role": role_for(self.user),
            }
        )
        return data


class UserSerializer(serializers.ModelSerializer):
    role = serializers.SerializerMethodField()
    full_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = (
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "role",
            "date_joined",
            "last_login",
        )
        read_only_fields = fields

    def get_role(self, obj: User) -> str:
        return role_for(obj)

    def get_full_name(self, obj: User) -> str:
        full_name = f"{obj.first_name} {obj.last_name}".strip()
        return full_name or obj.username
