from django.urls import path
from .views import (
    CategoryDetailAPIView,
    CategoryListCreateAPIView,
    CityDetailAPIView,
    CityListCreateAPIView,
    ServiceCategoryListAPIView,
)

urlpatterns = [
    path("categories", CategoryListCreateAPIView.as_view(), name="category-list"),
    path("categories/<int:pk>", CategoryDetailAPIView.as_view(), name="category-detail"),
    path("service-categories", ServiceCategoryListAPIView.as_view(), name="service-category-list"),
    path("cities", CityListCreateAPIView.as_view(), name="city-list"),
    path("cities/<int:pk>", CityDetailAPIView.as_view(), name="city-detail"),
]
