"""
E-Learning User Management Models

This module defines the user-related models for the E-Learning system,
extending Django's built-in User model with a platform role and automatic
profile management through Django signals.

Models:
- Profile: Extended user information carrying the platform role

Features:
- Automatic profile creation for new users
- ADMIN / STUDENT role used by the authorization guard
- Superusers are promoted to ADMIN on profile creation

Author: DSP Development Team
Version: 1.0.0
"""

from django.db import models
from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils.translation import gettext_lazy as _


class Profile(models.Model):
    """
    Extended user profile model for the E-Learning system.

    Attributes:
        user: One-to-one relationship with Django User model
        role: Platform role, ADMIN for course authors, STUDENT for learners

    The profile is automatically created when a new user is registered
    and maintains a one-to-one relationship with the User model.
    """

    class Role(models.TextChoices):
        ADMIN = "ADMIN", _("Administrator")
        STUDENT = "STUDENT", _("Student")

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        verbose_name=_("User"),
        help_text=_("Associated user account"),
    )

    role = models.CharField(
        max_length=10,
        choices=Role.choices,
        default=Role.STUDENT,
        verbose_name=_("Role"),
        help_text=_("Platform role used for authorization"),
    )

    class Meta:
        verbose_name = _("User Profile")
        verbose_name_plural = _("User Profiles")
        db_table = "elearning_profile"

    def __str__(self) -> str:
        return f"{self.user.username} Profile"

    def __repr__(self) -> str:
        return f"<Profile(user={self.user.username}, role={self.role})>"

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN


def user_has_admin_role(user) -> bool:
    """
    Returns True if the user may use the course authoring API.

    Superusers and staff always count as administrators; everybody else needs
    the ADMIN role on their profile.
    """
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser or user.is_staff:
        return True
    profile = getattr(user, "profile", None)
    return bool(profile and profile.is_admin)


# --- Signal Handlers for Automatic Profile Management ---


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created: bool, **kwargs) -> None:
    """
    Automatically create a user profile when a new user is created.

    Args:
        sender: The User model class
        instance: The actual User instance that was saved
        created: Boolean indicating if this is a new instance
        **kwargs: Additional signal arguments
    """
    if created:
        role = Profile.Role.ADMIN if instance.is_superuser else Profile.Role.STUDENT
        Profile.objects.get_or_create(user=instance, defaults={"role": role})
