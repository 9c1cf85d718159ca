"""Shared utilities."""

import re
import time
import uuid


def generate_execution_id() -> str:
    return f"exec_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    return re.sub(r"-+", "-", slug)
