"""
URL configuration for the StyleSwap backend.

Every app mounts its routes under ``/api/``; the Django admin lives at
``/admin/``.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "StyleSwap Admin Panel"
admin.site.site_title = "StyleSwap Admin Portal"
admin.site.index_title = "Welcome to the StyleSwap Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('styleswap.core.urls')),
    path('api/', include('styleswap.catalog.urls')),
    path('api/', include('styleswap.rentals.urls')),
    path('api/', include('styleswap.marketing.urls')),
    path('api/', include('styleswap.reports.urls')),
]
