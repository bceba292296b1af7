from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'expenses'

router = DefaultRouter()
router.register(r'', views.ExpenseViewSet, basename='expense')

urlpatterns = [
    # GET    /api/expenses/?group={id}            - List expenses
    # POST   /api/expenses/                       - Record expense (even or custom split)
    # GET    /api/expenses/{id}/                  - Get expense with shares
    # PATCH  /api/expenses/{id}/                  - Edit expense
    # DELETE /api/expenses/{id}/                  - Delete expense
    # GET    /api/expenses/export/?group={id}     - Download CSV
    # GET    /api/expenses/settlements/?group={id} - List settlements
    # POST   /api/expenses/settlements/           - Record settlement
    path('', include(router.urls)),
]
