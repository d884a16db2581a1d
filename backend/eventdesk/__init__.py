"""EventDesk API — multi-tenant event management backend."""

__version__ = "1.0.0"
