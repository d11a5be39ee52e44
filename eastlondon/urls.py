"""
URL configuration for the eastlondon project.

Every page lives under a locale prefix ("/en", "/ps"). Requests without one
never reach the resolver: community.middleware.LocaleAuthMiddleware
redirects them to the default locale first.
"""

from django.urls import include, path, register_converter

from community import views
from community.converters import LocaleConverter

register_converter(LocaleConverter, "locale")

urlpatterns = [
    path("<locale:locale>", views.home, name="home"),
    path("<locale:locale>/", include("community.urls")),
]
