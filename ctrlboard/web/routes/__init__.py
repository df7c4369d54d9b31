"""ctrlboard Web Route Modules.

Each module exports a `router` object (APIRouter instance); the app in
ctrlboard.web.app includes them.

Usage:
    from ctrlboard.web.routes import reports
    app.include_router(reports.router)
"""

from ctrlboard.web.routes import (
    classifications,
    health,
    reports,
    watchdogs,
)

__all__ = [
    "classifications",
    "health",
    "reports",
    "watchdogs",
]
