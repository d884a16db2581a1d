"""Core Layer — pure domain rules, enums, and errors. No IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Rule functions take "now" as an argument instead of reading the clock
    - Validators return error descriptor dicts; the service layer raises
"""
