from django.urls import path
from . import views

app_name = 'catalog'

urlpatterns = [
    path('items/<str:code>/', views.item_detail, name='item-detail'),
]
