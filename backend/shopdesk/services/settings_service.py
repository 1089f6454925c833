# Overview: Service-layer operations for the shop settings singleton.

from __future__ import annotations

from ..extensions import db
from ..models import ShopSettings
from ..models.settings import DEFAULT_SHOP_SETTINGS


def _current() -> ShopSettings | None:
    return db.session.query(ShopSettings).order_by(ShopSettings.updated_at.asc()).first()


def get_settings() -> dict:
    """
    Return the shop settings.

    When no row has been saved yet the defaults are returned without
    inserting anything (id is None in that case).
    """
    settings = _current()
    if settings is None:
        return {"id": None, **DEFAULT_SHOP_SETTINGS, "updated_at": None}
    return settings.to_dict()


def update_settings(patch: dict) -> dict:
    """Insert the singleton on first save, otherwise update it in place."""
    settings = _current()
    if settings is None:
        settings = ShopSettings(**{**DEFAULT_SHOP_SETTINGS, **patch})
        db.session.add(settings)
    else:
        for key, value in patch.items():
            setattr(settings, key, value)

    db.session.commit()
    return settings.to_dict()


def ensure_default_settings() -> bool:
    """Seed the default row if missing. Returns True when a row was created."""
    if _current() is not None:
        return False
    db.session.add(ShopSettings(**DEFAULT_SHOP_SETTINGS))
    db.session.commit()
    return True
