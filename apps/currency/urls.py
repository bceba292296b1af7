from django.urls import path
from . import views

app_name = 'currency'

urlpatterns = [
    path('', views.supported_currencies, name='currency-list'),
    path('rates/', views.current_rates, name='currency-rates'),
]
