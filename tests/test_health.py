# tests/test_health.py
import json

from fastapi import status

from townsquare import __version__
from townsquare.core.settings import settings


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "status": "ok",
        "service": settings.app_name,
        "version": settings.app_version,
    }


def test_root_lists_docs(client) -> None:
    body = client.get("/").json()
    assert body["docs"] == "/docs"
    assert body["version"] == __version__


def test_public_config_has_no_secrets(client) -> None:
    body = client.get("/api/v1/system/config").json()
    assert body["comments"]["max_depth"] == 5
    assert body["feed"]["hot_decay_seconds"] == 7200
    assert "chat" in body["rate_limits"]["budgets"]
    assert "secret" not in json.dumps(body).lower()
