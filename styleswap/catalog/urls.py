from django.urls import path
from .views import (
    product_list_create, product_categories, product_mine,
    product_detail, product_availability, product_reviews
)

urlpatterns = [
    # Product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/categories/', product_categories, name='product-categories'),
    path('products/mine/', product_mine, name='product-mine'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/availability/', product_availability, name='product-availability'),
    path('products/<int:pk>/reviews/', product_reviews, name='product-reviews'),
]
