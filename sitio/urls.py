"""
URL configuration for the hasone_button demo site.

El admin muestra los botones has-one; ``hasone/`` procesa "crear y vincular".
"""
from django.contrib import admin
from django.shortcuts import redirect
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("hasone/", include("hasone_button.urls")),
    path("", lambda r: redirect("admin:index")),
]
