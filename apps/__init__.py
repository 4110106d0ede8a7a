# apps/__init__.py

"""
OrgaOS - Django apps

- core: accounts, projects, memberships, invitations, permissions
- board: kanban tasks, websocket consumer and realtime fan-out
- agenda: personal calendar / private todos
"""

__version__ = '0.1.0'
