"""Hora actual para timestamps persistidos (ISO-8601 UTC con sufijo Z)."""
from datetime import datetime, timezone


def now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
