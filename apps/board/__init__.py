# apps/board/__init__.py

"""
Board - OrgaOS kanban

- Task API (To Do / In Progress / Done columns)
- Role checks through apps.core.permissions
- WebSocket consumer and realtime fan-out
"""
