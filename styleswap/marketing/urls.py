from django.urls import path
from .views import subscribe, subscriber_list, subscriber_delete, send_newsletter

urlpatterns = [
    path('marketing/subscribe/', subscribe, name='marketing-subscribe'),
    path('marketing/subscribers/', subscriber_list, name='marketing-subscriber-list'),
    path('marketing/subscribers/<str:email>/', subscriber_delete, name='marketing-subscriber-delete'),
    path('marketing/send-newsletter/', send_newsletter, name='marketing-send-newsletter'),
]
