from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import DocumentViewSet

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register('documents', DocumentViewSet, basename='document')

urlpatterns = [
    path('', include(router.urls)),
]
