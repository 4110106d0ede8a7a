# apps/board/urls.py

from django.urls import path
from . import views

app_name = 'board'

# Mounted under /api/
urlpatterns = [
    path('tasks', views.create_task, name='create_task'),
    path('tasks/project/<int:project_id>', views.project_tasks, name='project_tasks'),
    path('tasks/<int:task_id>', views.task_detail, name='task_detail'),

    # Drag-and-drop between columns
    path('tasks/<int:task_id>/status', views.update_task_status, name='update_task_status'),
]
