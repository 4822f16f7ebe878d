from django.urls import path
from . import views

app_name = 'scan'

urlpatterns = [
    # Badge authentication
    path('identify/', views.identify, name='identify'),
    path('verify/', views.verify_pin, name='verify'),
    path('register/', views.register, name='register'),

    # Session
    path('session/', views.current_session, name='session'),
    path('sign-out/', views.sign_out, name='sign-out'),
]
