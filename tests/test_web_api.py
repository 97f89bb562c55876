from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict

import pytest
from starlette.testclient import TestClient

from drishtifi.errors import GenerationFailed
from drishtifi.generation.parser import validate_report_payload
from drishtifi.storage import InMemoryStorage
from drishtifi.web import create_app

from conftest import png_bytes


class _Generator:
    def __init__(self, payload: Dict[str, Any]) -> None:
        self.payload = payload
        self.fail = False

    def __call__(self, shop_name, inventory, ledger):
        if self.fail:
            raise GenerationFailed()
        assert inventory.mime_type.startswith("image/")
        assert ledger.mime_type.startswith("image/")
        return validate_report_payload({**self.payload, "shop_name": shop_name})


@pytest.fixture
def generator(model_payload) -> _Generator:
    return _Generator(model_payload)


@pytest.fixture
def client(tmp_path: Path, generator: _Generator) -> TestClient:
    (tmp_path / "README.md").write_text("test marker", encoding="utf-8")
    app = create_app(
        root_dir=str(tmp_path),
        storage=InMemoryStorage(),
        generate=generator,
        clock=lambda: datetime(2026, 10, 18, 15, 45),
        serve_static=False,
        allow_origins=["*"],
    )
    return TestClient(app)


def _login(client: TestClient) -> Dict[str, str]:
    resp = client.post("/api/login", json={"username": "loan_officer", "password": "password123"})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def _upload(client: TestClient, headers: Dict[str, str], shop_name: str = "Raju Kirana Store"):
    return client.post(
        "/api/reports",
        headers=headers,
        data={"shop_name": shop_name},
        files={
            "inventory_image": ("inventory.png", png_bytes("red"), "image/png"),
            "ledger_image": ("ledger.png", png_bytes("blue"), "image/png"),
        },
    )


def test_health(client: TestClient) -> None:
    assert client.get("/api/health").json()["status"] == "ok"


def test_report_lifecycle_over_http(client: TestClient) -> None:
    headers = _login(client)

    listing = client.get("/api/reports", headers=headers).json()
    assert listing["username"] == "loan_officer"
    assert listing["items"] == []

    created = _upload(client, headers)
    assert created.status_code == 201
    report = created.json()
    assert report["id"].startswith("DF-")
    assert report["trust_score"] == "B+"
    assert report["analysisDate"] == "October 18, 2026, 03:45 PM"
    assert report["score_tone"] == "medium"

    listing = client.get("/api/reports", headers=headers).json()
    assert listing["count"] == listing["total"] == 1

    searched = client.get("/api/reports", headers=headers, params={"search": "kirana"}).json()
    assert [r["id"] for r in searched["items"]] == [report["id"]]
    assert client.get("/api/reports", headers=headers, params={"search": "sweets"}).json()["count"] == 0

    detail = client.get(f"/api/reports/{report['id']}", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["shop_name"] == "Raju Kirana Store"

    export = client.get(f"/api/reports/{report['id']}/export", headers=headers)
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/plain")
    assert f'filename="DrishtiFi-Report-{report["id"]}.txt"' in export.headers["content-disposition"]
    assert export.text.startswith("DrishtiFi: Digital Credit-Readiness Report\n")

    assert client.get("/api/reports/DF-0", headers=headers).status_code == 404


def test_requests_without_token_are_rejected(client: TestClient) -> None:
    assert client.get("/api/reports").status_code == 401
    assert client.get("/api/reports", headers={"Authorization": "Bearer nope"}).status_code == 401
    assert client.get("/api/progress").status_code == 401


def test_bad_login(client: TestClient) -> None:
    resp = client.post("/api/login", json={"username": "loan_officer", "password": "wrong"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid username or password."


def test_signup_validation_codes(client: TestClient) -> None:
    mismatch = client.post("/api/signup", json={"username": "priya", "password": "a1", "confirm_password": "b2"})
    assert mismatch.status_code == 400
    assert mismatch.json()["code"] == "PASSWORD_MISMATCH"

    created = client.post("/api/signup", json={"username": "priya", "password": "a1", "confirm_password": "a1"})
    assert created.status_code == 201
    assert created.json()["message"] == "Account for 'priya' created! Please login."

    taken = client.post("/api/signup", json={"username": "priya", "password": "a1", "confirm_password": "a1"})
    assert taken.json()["code"] == "USERNAME_TAKEN"

    login = client.post("/api/login", json={"username": "priya", "password": "a1"})
    assert login.status_code == 200


def test_incomplete_form_and_non_image(client: TestClient) -> None:
    headers = _login(client)
    missing = client.post("/api/reports", headers=headers, data={"shop_name": "Shop"})
    assert missing.status_code == 400
    assert missing.json()["code"] == "EMPTY_FIELD"

    not_image = client.post(
        "/api/reports",
        headers=headers,
        data={"shop_name": "Shop"},
        files={
            "inventory_image": ("notes.txt", b"plain text", "text/plain"),
            "ledger_image": ("ledger.png", png_bytes(), "image/png"),
        },
    )
    assert not_image.status_code == 400
    assert not_image.json()["code"] == "INVALID_IMAGE"


def test_generation_failure_maps_to_502(client: TestClient, generator: _Generator) -> None:
    headers = _login(client)
    generator.fail = True
    resp = _upload(client, headers)
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to generate credit report. Please try again."
    assert client.get("/api/reports", headers=headers).json()["total"] == 0

    progress = client.get("/api/progress", headers=headers).json()
    assert progress["view"] == "new_report"
    assert progress["authoritative"] is False


def test_logout_invalidates_token(client: TestClient) -> None:
    headers = _login(client)
    assert client.post("/api/logout", headers=headers).status_code == 200
    assert client.get("/api/reports", headers=headers).status_code == 401


def test_theme_preference(client: TestClient) -> None:
    assert client.get("/api/theme").json() == {"theme": "light"}
    assert client.put("/api/theme", json={"theme": "toggle"}).json() == {"theme": "dark"}
    assert client.get("/api/theme").json() == {"theme": "dark"}
    assert client.put("/api/theme", json={"theme": "light"}).json() == {"theme": "light"}

    bad = client.put("/api/theme", json={"theme": "sepia"})
    assert bad.status_code == 400
    assert bad.json()["code"] == "INVALID_THEME"


def test_new_login_replaces_the_previous_token(client: TestClient) -> None:
    first = _login(client)
    second = _login(client)
    assert first != second
    assert client.get("/api/reports", headers=first).status_code == 401
    assert client.get("/api/reports", headers=second).status_code == 200
    assert client.get("/api/health").json()["sessions"] == 1


def test_theme_reset(client: TestClient) -> None:
    client.put("/api/theme", json={"theme": "dark"})
    assert client.delete("/api/theme").json() == {"theme": "light"}
    assert client.get("/api/theme").json() == {"theme": "light"}
