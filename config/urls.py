from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView


# ---------- Health / Readiness checks -----------------------------------------

def health_check(request):
    """Liveness: 200 while the process is running."""
    return JsonResponse({"status": "ok"})


def readiness_check(request):
    """Readiness: checks database and cache connectivity."""
    from django.db import connection
    from django.core.cache import cache
    checks = {"db": "ok", "cache": "ok"}
    status_code = 200

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except Exception as exc:
        checks["db"] = str(exc)
        status_code = 503

    try:
        cache.set("_readiness_check", "1", timeout=5)
        val = cache.get("_readiness_check")
        if val != "1":
            checks["cache"] = "read-back failed"
            status_code = 503
    except Exception as exc:
        checks["cache"] = str(exc)
        status_code = 503

    overall = "ready" if status_code == 200 else "not_ready"
    return JsonResponse({"status": overall, **checks}, status=status_code)


urlpatterns = [
    path("admin/", admin.site.urls),

    # Health checks (unauthenticated)
    path("api/health", health_check, name="health-check"),
    path("api/readiness", readiness_check, name="readiness-check"),

    path("api/", include("apps.authentication.urls")),
    path("api/", include("apps.onboarding.urls")),
    path("api/", include("apps.employees.urls")),
    path("api/", include("apps.documents.urls")),
    path("api/", include("apps.reports.urls")),
    path("api/", include("apps.integrations.urls")),
    path("api/", include("apps.core.urls")),
]

if getattr(settings, "ENABLE_API_DOCS", False):
    urlpatterns += [
        path("api/schema", SpectacularAPIView.as_view(), name="schema"),
        path("api/docs", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
        path("api/redoc", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    ]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

handler404 = "apps.core.views.api_404_view"
