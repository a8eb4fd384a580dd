import time
import uuid


def generate_id() -> str:
    return uuid.uuid4().hex


def now_ms() -> int:
    """Current time as integer milliseconds since the epoch"""
    return int(time.time() * 1000)
