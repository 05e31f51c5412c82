"""
Root URL configuration.

All API routes live under ``/api/elearning/``; the Django admin (jazzmin
theme) is mounted at ``/admin/``.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/elearning/", include("elearning.urls")),
]
