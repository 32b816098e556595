from django.urls import path
from . import views

app_name = 'registry'

urlpatterns = [
    path('entities/', views.EntityListView.as_view(), name='entity_list'),
    path('entities/new/', views.EntityCreateView.as_view(), name='entity_create'),
    path('permits/', views.PermitRegisterView.as_view(), name='permit_register'),
]
