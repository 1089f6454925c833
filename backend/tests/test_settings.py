"""
Shop settings tests.
"""

from shopdesk.models import ShopSettings
from shopdesk.services import settings_service


def test_defaults_without_a_row(db_session):
    settings = settings_service.get_settings()
    assert settings["id"] is None
    assert settings["name"] == "My Shop"
    assert settings["currency"] == "₹"
    assert settings["tax_rate_bps"] == 0
    assert db_session.query(ShopSettings).count() == 0


def test_first_save_creates_singleton(db_session):
    saved = settings_service.update_settings({"name": "Sharma General Store", "tax_rate_bps": 500})
    assert saved["id"] is not None
    assert saved["printer_width"] == "80mm"

    again = settings_service.update_settings({"auto_print": True})
    assert again["id"] == saved["id"]
    assert again["name"] == "Sharma General Store"
    assert again["auto_print"] is True
    assert db_session.query(ShopSettings).count() == 1


def test_ensure_defaults_is_idempotent(db_session):
    assert settings_service.ensure_default_settings() is True
    assert settings_service.ensure_default_settings() is False


def test_any_role_reads_settings(client, viewer_headers):
    resp = client.get("/api/settings", headers=viewer_headers)
    assert resp.status_code == 200
    assert resp.json["name"] == "My Shop"


def test_manager_updates_settings(client, manager_headers):
    resp = client.put(
        "/api/settings",
        json={"name": "Corner Kirana", "tax_rate_bps": "1800", "printer_name": "  "},
        headers=manager_headers,
    )
    assert resp.status_code == 200
    assert resp.json["tax_rate_bps"] == 1800
    assert resp.json["printer_name"] is None

    assert client.get("/api/settings", headers=manager_headers).json["name"] == "Corner Kirana"


def test_tax_rate_bounds(client, admin_headers):
    resp = client.put("/api/settings", json={"tax_rate_bps": 10001}, headers=admin_headers)
    assert resp.status_code == 400
    resp = client.put("/api/settings", json={"tax_rate_bps": -1}, headers=admin_headers)
    assert resp.status_code == 400


def test_unknown_field_rejected(client, admin_headers):
    resp = client.put("/api/settings", json={"id": "x"}, headers=admin_headers)
    assert resp.status_code == 400


def test_cashier_cannot_update(client, cashier_headers):
    resp = client.put("/api/settings", json={"name": "Mine now"}, headers=cashier_headers)
    assert resp.status_code == 403
