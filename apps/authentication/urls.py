"""
Authentication URLs
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    ApiKeyViewSet, CurrentUserView, InvitationViewSet, LoginView, LogoutView,
    PasswordChangeView, RegisterView,
)

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register('invitations', InvitationViewSet, basename='invitation')
router.register('settings/api-keys', ApiKeyViewSet, basename='api-key')

urlpatterns = [
    path('register', RegisterView.as_view(), name='register'),
    path('login', LoginView.as_view(), name='login'),
    path('logout', LogoutView.as_view(), name='logout'),
    path('user', CurrentUserView.as_view(), name='current-user'),
    path('user/change-password', PasswordChangeView.as_view(), name='change-password'),
    path('', include(router.urls)),
]
