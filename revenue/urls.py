from django.urls import path
from . import views

app_name = 'revenue'

urlpatterns = [
    path('invoices/', views.InvoiceListView.as_view(), name='invoice_list'),
    path('invoices/<int:pk>/', views.InvoiceDetailView.as_view(), name='invoice_detail'),
    path('invoices/<int:pk>/payment-status/', views.InvoicePaymentStatusView.as_view(), name='invoice_payment_status'),
    path('invoices/<int:pk>/follow-up/', views.InvoiceFollowUpView.as_view(), name='invoice_follow_up'),
    path('invoices/<int:pk>/verify/', views.InvoiceVerifyView.as_view(), name='invoice_verify'),
]
