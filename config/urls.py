# config/urls.py

from django.contrib import admin
from django.urls import path, include

from apps.core.views import health_check

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # Health check
    path('health/', health_check, name='health_check'),

    # REST API
    path('api/', include('apps.core.urls')),
    path('api/', include('apps.board.urls')),
    path('api/', include('apps.agenda.urls')),
]

# Admin titles
admin.site.site_header = 'OrgaOS Admin'
admin.site.site_title = 'OrgaOS'
admin.site.index_title = 'System administration'
