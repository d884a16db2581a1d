"""Infrastructure Layer — database sessions, logging, and external service clients.

Invariants:
    - Infrastructure never imports core/ domain rules (only core/errors.py)
    - External calls wrapped with retry/timeout/error mapping
"""
