from django.urls import path
from . import views

urlpatterns = [
    path('reports/admin-dashboard/', views.admin_dashboard, name='admin-dashboard'),
    path('reports/vendor-sales/', views.vendor_sales, name='vendor-sales'),
]
