"""
HTTP routers. Each module exports `router`; create_app() mounts them under /api.
"""
from taskory.api.routes import attachments, comments, organizations, projects, tasks

ROUTERS = [
    tasks.router,
    comments.router,
    organizations.router,
    projects.router,
    attachments.router,
]
