# backend/hrdb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- The package exposes a clear surface.

The actual model classes are kept in hrdb/apps/*/models.py.
"""

from .apps.employees import models as employees_models        # employee identity + personal info
from .apps.audit import models as audit_models                # append-only audit trail
from .apps.training import models as training_models          # modules, assignments, progress sessions
from .apps.onboarding import models as onboarding_models      # onboarding pages + per-employee progress

__all__ = [
    "employees_models",
    "audit_models",
    "training_models",
    "onboarding_models",
]
