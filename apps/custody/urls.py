from django.urls import path
from . import views

app_name = 'custody'

urlpatterns = [
    # Transitions
    path('checkout/', views.checkout, name='checkout'),
    path('checkin/', views.checkin, name='checkin'),

    # Listings
    path('active/', views.active, name='active'),
    path('history/', views.history, name='history'),
]
