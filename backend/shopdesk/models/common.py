from __future__ import annotations

import uuid


def new_id() -> str:
    """Opaque record identifier assigned on insert."""
    return str(uuid.uuid4())
