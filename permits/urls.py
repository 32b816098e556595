from django.urls import path
from . import views

app_name = 'permits'

urlpatterns = [
    # Intent registrations
    path('intents/', views.IntentListView.as_view(), name='intent_list'),
    path('intents/new/', views.IntentCreateView.as_view(), name='intent_create'),
    path('intents/<int:pk>/', views.IntentDetailView.as_view(), name='intent_detail'),
    path('intents/<int:pk>/transition/', views.IntentTransitionView.as_view(), name='intent_transition'),

    # Permit applications
    path('applications/', views.ApplicationListView.as_view(), name='application_list'),
    path('applications/new/', views.ApplicationCreateView.as_view(), name='application_create'),
    path('applications/<int:pk>/', views.ApplicationDetailView.as_view(), name='application_detail'),
    path('applications/<int:pk>/submit/', views.ApplicationSubmitView.as_view(), name='application_submit'),
    path('applications/<int:pk>/transition/', views.ApplicationTransitionView.as_view(), name='application_transition'),
    path('applications/<int:pk>/assessment/', views.AssessmentCreateView.as_view(), name='application_assessment'),
]
