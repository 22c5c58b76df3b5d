# marketplace/urls.py
#
# Purpose:
# - Project URL router.
# - Every JSON API lives under /api/; each app contributes its own DRF router.
#
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    # Django admin
    path("admin/", admin.site.urls),

    # =====
    # API's
    # =====
    path("api/", include("orders.urls")),
    path("api/", include("slots.urls")),
    path("api/", include("catalog.urls")),
    path("api/", include("addresses.urls")),
    path("api/", include("staff.urls")),
    path("api/", include("coupons.urls")),
    path("api/", include("reviews.urls")),
    path("api/", include("notifications.urls")),
]

# Static files in DEBUG (dev only). In production, serve via web server / CDN.
if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
