# Overview: Shared column helpers for ledger models.

from __future__ import annotations

import uuid


def new_id() -> str:
    """Row identifiers are UUID4 strings so callers may supply their own."""
    return str(uuid.uuid4())
