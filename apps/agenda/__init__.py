# apps/agenda/__init__.py

"""
Agenda - personal workspace

Calendar entries and private todos. Owned by a single user, no roles and
no realtime events.
"""
