# backend/hrdb/apps/employees/__init__.py
"""
Employees app

Responsible for:
- Employee identity records referenced by training and onboarding
- Employee self-service personal information updates
"""

from . import models  # noqa: F401
