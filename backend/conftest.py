from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"

from hrdb.database import Base  # noqa: E402
from hrdb.apps.audit import models as audit_models  # noqa: E402
from hrdb.apps.employees import models as employee_models  # noqa: E402
from hrdb.apps.onboarding import models as onboarding_models  # noqa: E402
from hrdb.apps.training import models as training_models  # noqa: E402


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(
        bind=engine,
        tables=[
            employee_models.Employee.__table__,
            audit_models.AuditEvent.__table__,
            training_models.TrainingModule.__table__,
            training_models.TrainingAssignment.__table__,
            training_models.TrainingProgress.__table__,
            onboarding_models.OnboardingPage.__table__,
            onboarding_models.EmployeeOnboardingProgress.__table__,
        ],
    )
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
