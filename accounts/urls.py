from django.urls import path
from django.contrib.auth import views as auth_views
from . import views

urlpatterns = [
    path('login/', views.PortalLoginView.as_view(), name='login'),
    path('logout/', auth_views.LogoutView.as_view(), name='logout'),

    # User Management
    path('management/users/', views.UserListView.as_view(), name='user_list'),
    path('management/users/add-staff/', views.StaffUserCreateView.as_view(), name='staff_user_create'),
    path('management/users/<int:pk>/suspension/', views.UserSuspendView.as_view(), name='user_suspension'),
    path('management/users/<int:pk>/reset-password/', views.reset_password, name='user_reset_password'),

    # Password Reset (link sent by admins)
    path('reset/<uidb64>/<token>/', auth_views.PasswordResetConfirmView.as_view(), name='password_reset_confirm'),
    path('reset/done/', auth_views.PasswordResetCompleteView.as_view(), name='password_reset_complete'),

    # Password Change (Self-Service)
    path('password-change/', auth_views.PasswordChangeView.as_view(template_name='accounts/password_change.html', success_url='/accounts/password-change/done/'), name='password_change'),
    path('password-change/done/', auth_views.PasswordChangeDoneView.as_view(template_name='accounts/password_change_done.html'), name='password_change_done'),
]
