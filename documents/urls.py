from django.urls import path
from . import views

app_name = 'documents'

urlpatterns = [
    path('', views.DocumentListView.as_view(), name='document_list'),
    path('upload/', views.DocumentUploadView.as_view(), name='document_upload'),
    path('drafts/<str:category>/', views.draft_documents, name='draft_documents'),
    path('<int:pk>/download/', views.download_document, name='document_download'),
    path('<int:pk>/delete/', views.DocumentDeleteView.as_view(), name='document_delete'),
]
