# backend/hrdb/apps/training/__init__.py

"""
Employee training app.

Training modules are assigned to employees, unlocked by scanning the
module's QR code, tracked through progress sessions and completed by the
employee. This module is imported in hrdb.__init__ so that Alembic sees
the models.
"""

from . import models  # noqa: F401
