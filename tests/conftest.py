"""Point the app at a private in-memory SQLite database before any app module is imported."""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ["WEBHOOK_SECRET"] = "test-webhook-secret"
