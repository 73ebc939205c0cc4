# backend/hrdb/apps/__init__.py
"""
Feature apps of the HR portal: employees, audit, workflow, training and
onboarding. Each app keeps its models, schemas, services and router.
"""
