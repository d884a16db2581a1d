"""Process-wide test environment: settings must resolve before eventdesk imports."""

import os

os.environ.setdefault("ANTHROPIC_API_KEY", "test-key-not-used")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:5173,http://testserver")
