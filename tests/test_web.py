from urllib.parse import urlsplit

import pytest

import web
from exceptions import FetchFailure
from models import ProductMetadata
from services.qr_codes import build_verify_url


@pytest.fixture
def client(monkeypatch):
    web.app.config["TESTING"] = True
    monkeypatch.setattr(web, "_load_metadata", lambda pid: None)
    with web.app.test_client() as c:
        yield c


def _sold(pid):
    return {
        "productId": 1,
        "statusIndex": 6,
        "manufacturer": "0x43E5bd17BdD2A599050dcBf9dFBd65B04caEeb12",
        "currentOwner": "0xB30Ee27129b52aA17492b4bC728080D8c328EB25",
        "isAuthentic": True,
        "factoryId": 3,
    }


def test_verify_page_renders_sold(client, monkeypatch):
    seen = []

    def fetch(pid):
        seen.append(pid)
        return _sold(pid)

    monkeypatch.setattr(web, "_fetch_core", fetch)
    resp = client.get("/verify/p01")
    html = resp.get_data(as_text=True)

    assert resp.status_code == 200
    assert seen == ["p01"]
    assert "Sold" in html
    assert "status-ok" in html
    assert "0x43E5bd17BdD2A599050dcBf9dFBd65B04caEeb12" in html
    assert "0xB30Ee27129b52aA17492b4bC728080D8c328EB25" in html


@pytest.mark.parametrize("pid", ["lot A/1", "a%25b", "100%", "p01"])
def test_qr_link_resolves_to_same_product_id(client, monkeypatch, pid):
    seen = []

    def fetch(product_id):
        seen.append(product_id)
        return _sold(product_id)

    monkeypatch.setattr(web, "_fetch_core", fetch)
    path = urlsplit(build_verify_url("http://localhost", pid)).path
    resp = client.get(path)

    assert resp.status_code == 200
    assert seen == [pid]


def test_verify_without_raw_uri_decodes_once(client, monkeypatch):
    seen = []
    monkeypatch.setattr(web, "_fetch_core", lambda pid: seen.append(pid) or _sold(pid))
    client.get("/verify/a%2525b", environ_overrides={"RAW_URI": "", "REQUEST_URI": ""})
    assert seen == ["a%25b"]


def test_verify_page_not_authentic(client, monkeypatch):
    monkeypatch.setattr(web, "_fetch_core", lambda pid: dict(_sold(pid), statusIndex=3, isAuthentic=False))
    html = client.get("/verify/p01").get_data(as_text=True)
    assert "status-error" in html
    assert "Not authentic" in html


def test_verify_page_error_state(client, monkeypatch):
    def fail(pid):
        raise FetchFailure("Blockchain client not initialized.")

    monkeypatch.setattr(web, "_fetch_core", fail)
    html = client.get("/verify/p01").get_data(as_text=True)
    assert 'id="error"' in html
    assert "Blockchain client not initialized." in html
    assert 'id="result"' not in html


def test_verify_page_shows_metadata(client, monkeypatch):
    monkeypatch.setattr(web, "_fetch_core", _sold)
    monkeypatch.setattr(web, "_load_metadata", lambda pid: ProductMetadata(
        pid, name="Organic Strawberries", images=["https://img.example.com/1.png"],
        updated_ts="2026-01-02T03:04:05+00:00",
    ))
    html = client.get("/verify/p01").get_data(as_text=True)
    assert "Organic Strawberries" in html
    assert "https://img.example.com/1.png" in html


def test_index_without_id_shows_form_only(client):
    html = client.get("/").get_data(as_text=True)
    assert 'id="productId"' in html
    assert "downloadBtn" not in html


def test_index_blank_id_flashes_message(client):
    html = client.get("/?productId=+").get_data(as_text=True)
    assert "Please enter a product ID" in html
    assert "<img" not in html


def test_index_with_id_embeds_qr(client):
    html = client.get("/?productId=p01").get_data(as_text=True)
    assert "/verify/p01" in html
    assert "downloadBtn" in html


def test_qr_image(client):
    resp = client.get("/qr/image?productId=p01")
    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.data.startswith(b"\x89PNG")


def test_qr_download_names_file(client):
    resp = client.get("/qr/download?productId=p01")
    assert resp.status_code == 200
    assert 'filename="qr-p01.png"' in resp.headers["Content-Disposition"]


def test_qr_download_without_image_redirects_with_message(client):
    resp = client.get("/qr/download", follow_redirects=True)
    assert "Please generate a QR code first" in resp.get_data(as_text=True)


def test_product_api(client, monkeypatch):
    monkeypatch.setattr(web, "_fetch_core", _sold)
    body = client.get("/api/products/p01").get_json()
    assert body["statusLabel"] == "Sold"
    assert body["statusClass"] == "status-ok"
    assert body["core"]["statusIndex"] == "6"
    assert body["core"]["isAuthentic"] is True


def test_product_api_failure(client, monkeypatch):
    def fail(pid):
        raise FetchFailure("node down")

    monkeypatch.setattr(web, "_fetch_core", fail)
    resp = client.get("/api/products/p01")
    assert resp.status_code == 502
    assert resp.get_json()["error"] == "node down"


def test_format_ts_filter():
    assert web.format_ts(None) == "—"
    assert web.format_ts("garbage") == "—"
    assert "2026" in web.format_ts("2026-01-02T03:04:05Z")
