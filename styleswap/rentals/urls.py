from django.urls import path
from .views import (
    order_list_create, order_mine, order_vendor, order_detail, order_status,
    order_feedback, order_issue_create, order_issue_update, issue_list
)

urlpatterns = [
    # Order endpoints
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/mine/', order_mine, name='order-mine'),
    path('orders/vendor/', order_vendor, name='order-vendor'),
    path('orders/issues/', issue_list, name='issue-list'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/status/', order_status, name='order-status'),
    path('orders/<int:pk>/feedback/', order_feedback, name='order-feedback'),

    # Issue endpoints
    path('orders/<int:pk>/issues/', order_issue_create, name='order-issue-create'),
    path('orders/<int:pk>/issues/<str:issue_id>/', order_issue_update, name='order-issue-update'),
]
