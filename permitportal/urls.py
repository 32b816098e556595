from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('accounts/', include('accounts.urls')),
    path('registry/', include('registry.urls')),
    path('permits/', include('permits.urls')),
    path('documents/', include('documents.urls')),
    path('revenue/', include('revenue.urls')),
    path('notifications/', include('notifications.urls')),
    path('', include('core.urls')),
]
