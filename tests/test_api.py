"""Tests for the FastAPI web API."""

import base64
import secrets
from pathlib import Path

import pytest
import yaml
from fastapi.testclient import TestClient

from tegata.core.manager import CookieManager, ManagerOptions

A = base64.b64encode(b"\xaa" * 32).decode()
B = base64.b64encode(b"\xbb" * 32).decode()
C = base64.b64encode(b"\xcc" * 64).decode()


def _manager(current: str, previous: str) -> CookieManager:
    return CookieManager.from_options(
        ManagerOptions(current_secret=current, previous_secret=previous)
    )


def _client(manager: CookieManager) -> TestClient:
    from tegata.api.routes import create_app

    # Cookies are always Secure, so the client must talk https to send them back.
    return TestClient(create_app(manager=manager), base_url="https://testserver")


@pytest.fixture()
def client() -> TestClient:
    return _client(_manager(A, A))


class TestCreateApp:
    def test_loads_manager_from_config(self, tmp_path: Path) -> None:
        from tegata.api.routes import create_app

        p = tmp_path / "config.yaml"
        p.write_text(yaml.dump({"cookies": {"current_secret": B, "previous_secret": A}}))
        app = create_app(config_path=str(p))
        assert isinstance(app.state.manager, CookieManager)

    def test_invalid_config_aborts(self, tmp_path: Path) -> None:
        from tegata.api.routes import create_app
        from tegata.config.loader import ConfigError

        p = tmp_path / "config.yaml"
        p.write_text(yaml.dump({"cookies": {"current_secret": "short", "previous_secret": A}}))
        with pytest.raises(ConfigError):
            create_app(config_path=str(p))

    def test_missing_config_aborts(self, tmp_path: Path) -> None:
        from tegata.api.routes import create_app

        with pytest.raises(FileNotFoundError):
            create_app(config_path=str(tmp_path / "nope.yaml"))


class TestSignReadEndpoints:
    def test_sign_then_read(self, client: TestClient) -> None:
        resp = client.post("/sign", json={"name": "session", "value": "alice"})
        assert resp.status_code == 200
        token = resp.json()["token"]
        resp = client.post("/read", json={"name": "session", "token": token})
        assert resp.status_code == 200
        assert resp.json() == {"name": "session", "value": "alice"}

    def test_read_wrong_name_is_401(self, client: TestClient) -> None:
        token = client.post("/sign", json={"name": "session", "value": "alice"}).json()["token"]
        resp = client.post("/read", json={"name": "csrf", "token": token})
        assert resp.status_code == 401
        assert "error" in resp.json()

    def test_read_after_rotation(self) -> None:
        token = _client(_manager(A, A)).post(
            "/sign", json={"name": "session", "value": "alice"}
        ).json()["token"]
        resp = _client(_manager(B, A)).post("/read", json={"name": "session", "token": token})
        assert resp.status_code == 200
        assert resp.json()["value"] == "alice"

    def test_read_after_two_rotations_is_401(self) -> None:
        token = _client(_manager(A, A)).post(
            "/sign", json={"name": "session", "value": "alice"}
        ).json()["token"]
        resp = _client(_manager(C, B)).post("/read", json={"name": "session", "token": token})
        assert resp.status_code == 401
        assert "previous" in resp.json()["error"]

    def test_sign_oversized_value_is_500(self, client: TestClient) -> None:
        resp = client.post("/sign", json={"name": "session", "value": secrets.token_hex(4000)})
        assert resp.status_code == 500
        assert "session" in resp.json()["error"]


class TestCookieEndpoints:
    def test_set_get_delete_lifecycle(self, client: TestClient) -> None:
        resp = client.put("/cookies/session", json={"value": "alice"})
        assert resp.status_code == 200
        assert "session" in client.cookies

        resp = client.get("/cookies/session")
        assert resp.status_code == 200
        assert resp.json() == {"name": "session", "value": "alice"}

        resp = client.delete("/cookies/session")
        assert resp.status_code == 200
        assert "Max-Age=-1" in resp.headers["set-cookie"]

        resp = client.get("/cookies/session")
        assert resp.status_code == 404

    def test_set_cookie_header_attributes(self, client: TestClient) -> None:
        resp = client.put("/cookies/session", json={"value": "alice"})
        header = resp.headers["set-cookie"].lower()
        assert "httponly" in header
        assert "secure" in header
        assert "samesite=lax" in header
        assert "path=/" in header

    def test_get_missing_cookie_is_404(self, client: TestClient) -> None:
        resp = client.get("/cookies/session")
        assert resp.status_code == 404
        assert "not found" in resp.json()["error"]

    def test_get_forged_cookie_is_401(self, client: TestClient) -> None:
        resp = client.get("/cookies/session", headers={"cookie": "session=forged"})
        assert resp.status_code == 401

    def test_get_cookie_signed_before_rotation(self) -> None:
        token = _manager(A, A).sign("session", "alice")
        resp = _client(_manager(B, A)).get(
            "/cookies/session", headers={"cookie": f"session={token}"}
        )
        assert resp.status_code == 200
        assert resp.json()["value"] == "alice"

    def test_cookie_not_valid_under_other_name(self, client: TestClient) -> None:
        token = _manager(A, A).sign("session", "alice")
        resp = client.get("/cookies/csrf", headers={"cookie": f"csrf={token}"})
        assert resp.status_code == 401

    def test_set_oversized_value_is_500(self, client: TestClient) -> None:
        resp = client.put("/cookies/session", json={"value": secrets.token_hex(4000)})
        assert resp.status_code == 500
        assert "set-cookie" not in resp.headers
        assert "session" not in client.cookies

    def test_set_invalid_name_is_400(self, client: TestClient) -> None:
        resp = client.put("/cookies/bad%20name", json={"value": "alice"})
        assert resp.status_code == 400
        assert "not a valid cookie name" in resp.json()["error"]
        assert "set-cookie" not in resp.headers

    def test_delete_invalid_name_succeeds(self, client: TestClient) -> None:
        resp = client.delete("/cookies/bad%20name")
        assert resp.status_code == 200
        assert resp.json()["status"] == "deleted"
        assert "set-cookie" not in resp.headers
