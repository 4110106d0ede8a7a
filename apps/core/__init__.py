# apps/core/__init__.py

"""
Core - OrgaOS base app

- Models (User, Project, Membership, Invitation, Task, Event)
- Role resolution and permission checks
- Bearer token authentication and request logging
- Auth, project, member and invitation API
"""
