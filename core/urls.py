"""Root URL table.

All API routes live under `/api/v1/`; the Django admin stays at `/admin/`.
"""

from django.contrib import admin
from django.urls import include, path

api_patterns = [
    path("", include("accounts.api.urls")),
    path("", include("providers.api.urls")),
    path("", include("catalog.api.urls")),
    path("", include("common.api.urls")),
]

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/v1/", include(api_patterns)),
]
