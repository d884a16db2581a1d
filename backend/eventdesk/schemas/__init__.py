"""Pydantic Schemas — request/response contracts for API endpoints.

Invariants:
    - Schemas validate at the system boundary (user input, API responses)
    - Domain enums from core/domain_types.py used for enum fields

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
