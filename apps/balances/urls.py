from django.urls import path
from . import views

app_name = 'balances'

urlpatterns = [
    # GET /api/balances/group/{id}/ - Member balances
    path('group/<int:group_id>/', views.group_balances, name='group-balances'),
]
