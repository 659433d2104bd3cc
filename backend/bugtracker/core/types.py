"""Column types and id generators shared by the models"""
import secrets
import time
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, TypeDecorator


def utcnow() -> datetime:
    """Current time as naive UTC, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_uuid() -> str:
    return str(uuid.uuid4())


def generate_bug_number() -> str:
    """
    Display identifier for a new bug, e.g. ``BUG-1718031234567-3FA9``:
    creation time in epoch milliseconds plus four random hex digits.
    """
    millis = time.time_ns() // 1_000_000
    return f"BUG-{millis}-{secrets.token_hex(2).upper()}"


class GUID(TypeDecorator):
    """UUIDs kept as 36-character strings on every backend"""
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else str(value)
