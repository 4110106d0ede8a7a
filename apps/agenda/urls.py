# apps/agenda/urls.py

from django.urls import path
from . import views

app_name = 'agenda'

# Mounted under /api/
urlpatterns = [
    path('events', views.events_view, name='events'),
    path('events/<int:event_id>', views.event_detail_view, name='event_detail'),
]
