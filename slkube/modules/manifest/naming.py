"""Kubernetes Job name generation."""

import re
import secrets
from datetime import datetime
from typing import Optional

JOB_NAME_PREFIX = "sl-"
MAX_NAME_LENGTH = 63  # RFC 1123 label limit for Job names

_INVALID_CHARS = re.compile(r"[^a-z0-9-]")


def job_name_suffix(now: datetime, suffix: int) -> str:
    """Timestamp plus 4 hex digits of randomness, e.g. -20240101-120000-0a1f."""
    return f"-{now.strftime('%Y%m%d-%H%M%S')}-{suffix & 0xFFFF:04x}"


def generate_job_name(
    command: str,
    now: Optional[datetime] = None,
    suffix: Optional[int] = None,
) -> str:
    """
    Generate a unique, platform-legal Job name for a command.

    Names are lower-cased and restricted to [a-z0-9-]. When the result would
    exceed 63 characters the command part is truncated, so the timestamp and
    random suffix that make the name unique always survive.

    Args:
        command: Starlake command name
        now: Instant to stamp the name with (defaults to the current time)
        suffix: 16-bit random value (defaults to a fresh random number)

    Returns:
        Job name, at most 63 characters long
    """
    if now is None:
        now = datetime.now()
    if suffix is None:
        suffix = secrets.randbelow(0x10000)

    tail = job_name_suffix(now, suffix)
    slug = _INVALID_CHARS.sub("-", command.lower())
    budget = MAX_NAME_LENGTH - len(JOB_NAME_PREFIX) - len(tail)

    return f"{JOB_NAME_PREFIX}{slug[:budget]}{tail}"
