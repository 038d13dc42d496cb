"""HTTP tests for the FastAPI surface, backed by fake messaging clients."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from wabroker.app import App
from wabroker.core.modules.qr.renderer import DATA_URI_PREFIX
from wabroker.web.server import create_fastapi_app

VALID_SEND = {"userId": "tenant-42", "number": "+1 (555) 010-0000", "message": "Your order has shipped."}
CHAT_ID = "15550100000@c.us"


@pytest.fixture
def make_client(config):
    """Open a TestClient (running the app lifespan) around the given client factory."""

    @contextmanager
    def _make(factory) -> Iterator[TestClient]:
        app = create_fastapi_app(App(config, client_factory=factory), config)
        with TestClient(app) as client:
            yield client

    return _make


def test_health(make_client, fake_factory):
    with make_client(fake_factory) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_lifespan_stores_only_app_instance(make_client, fake_factory):
    with make_client(fake_factory) as client:
        state = client.app.state

        assert isinstance(state.app, App)
        assert not hasattr(state, "config")


class TestStartSession:
    def test_missing_user_id(self, make_client, fake_factory):
        with make_client(fake_factory) as client:
            response = client.post("/start-session", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "UserId required", "type": "validation_error"}

    def test_invalid_user_id(self, make_client, fake_factory):
        with make_client(fake_factory) as client:
            response = client.post("/start-session", json={"userId": "../etc"})

        assert response.status_code == 400
        assert fake_factory.clients == []

    def test_qr_returned_as_png_data_uri(self, make_client, qr_factory):
        with make_client(qr_factory) as client:
            response = client.post("/start-session", json={"userId": "tenant-42"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "qr"
        assert body["qr"].startswith(DATA_URI_PREFIX)

    def test_ready_when_login_restored(self, make_client, ready_factory):
        with make_client(ready_factory) as client:
            response = client.post("/start-session", json={"userId": "tenant-42"})

        assert response.status_code == 200
        assert response.json() == {"status": "ready"}

    def test_pending_without_qr(self, make_client, fake_factory):
        with make_client(fake_factory) as client:
            first = client.post("/start-session", json={"userId": "tenant-42"})
            second = client.post("/start-session", json={"userId": "tenant-42"})

        assert first.json() == {"status": "pending"}
        assert second.json() == {"status": "pending"}
        assert len(fake_factory.clients) == 1


class TestCheckLogin:
    def test_not_started(self, make_client, fake_factory):
        with make_client(fake_factory) as client:
            response = client.get("/check-login/tenant-42")

        assert response.status_code == 200
        assert response.json() == {"status": "not_started"}
        assert fake_factory.clients == []

    def test_resumes_stored_login(self, make_client, fake_factory, config):
        (Path(config.auth_path) / "session-tenant-42" / "Default").mkdir(parents=True)
        with make_client(fake_factory) as client:
            response = client.get("/check-login/tenant-42")

        assert response.json() == {"status": "pending"}
        assert [c.user_id for c in fake_factory.clients] == ["tenant-42"]

    def test_ready_after_start(self, make_client, ready_factory):
        with make_client(ready_factory) as client:
            client.post("/start-session", json={"userId": "tenant-42"})
            response = client.get("/check-login/tenant-42")

        assert response.json() == {"status": "ready"}

    def test_invalid_user_id(self, make_client, fake_factory):
        with make_client(fake_factory) as client:
            response = client.get("/check-login/tenant.42")

        assert response.status_code == 400


class TestSendMessage:
    @pytest.mark.parametrize("missing", ["userId", "number", "message"])
    def test_missing_field(self, make_client, fake_factory, missing):
        body = {key: value for key, value in VALID_SEND.items() if key != missing}
        with make_client(fake_factory) as client:
            response = client.post("/send-message", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "userId, number, and message are required"

    def test_invalid_number(self, make_client, fake_factory):
        with make_client(fake_factory) as client:
            response = client.post("/send-message", json={**VALID_SEND, "number": "555-0100"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid phone number", "type": "validation_error"}
        assert fake_factory.clients == []

    def test_sent(self, make_client, ready_factory):
        with make_client(ready_factory) as client:
            response = client.post("/send-message", json=VALID_SEND)

        assert response.status_code == 200
        assert response.json() == {"status": "Message sent"}
        assert ready_factory.latest("tenant-42").sent == [(CHAT_ID, "Your order has shipped.", None)]

    def test_timeout_when_never_ready(self, make_client, fake_factory):
        with make_client(fake_factory) as client:
            response = client.post("/send-message", json=VALID_SEND)

        assert response.status_code == 500
        assert response.json() == {"error": "Timeout: Client not ready after waiting.", "type": "timeout"}

    def test_backend_failure(self, make_client, ready_factory):
        with make_client(ready_factory) as client:
            client.post("/start-session", json={"userId": "tenant-42"})
            ready_factory.latest("tenant-42").fail_at_call = 0
            response = client.post("/send-message", json=VALID_SEND)

        assert response.status_code == 500
        assert response.json() == {"error": "Evaluation failed: chat not found", "type": "backend_error"}

    def test_malformed_body(self, make_client, fake_factory):
        with make_client(fake_factory) as client:
            response = client.post(
                "/send-message", content=b"{not json", headers={"content-type": "application/json"}
            )

        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_body_too_large(self, make_client, fake_factory, config):
        config.max_body_size = 1024
        with make_client(fake_factory) as client:
            response = client.post("/send-message", json={**VALID_SEND, "message": "x" * 2048})

        assert response.status_code == 413
        assert response.json()["type"] == "payload_too_large"

    def test_chunked_body_too_large(self, make_client, fake_factory, config):
        config.max_body_size = 1024
        chunks = iter([b"{\"message\": \"", b"x" * 800, b"x" * 800, b"\"}"])
        with make_client(fake_factory) as client:
            response = client.post("/send-message", content=chunks, headers={"content-type": "application/json"})

        assert response.status_code == 413
        assert response.json() == {"error": "Request body too large", "type": "payload_too_large"}
        assert fake_factory.clients == []

    def test_chunked_body_within_limit(self, make_client, ready_factory):
        body = b'{"userId": "tenant-42", "number": "15550100000", "message": "hello"}'
        with make_client(ready_factory) as client:
            response = client.post(
                "/send-message", content=iter([body[:20], body[20:]]), headers={"content-type": "application/json"}
            )

        assert response.status_code == 200
        assert ready_factory.latest("tenant-42").sent == [(CHAT_ID, "hello", None)]


class TestSendPdfUrl:
    def test_missing_url(self, make_client, fake_factory):
        with make_client(fake_factory) as client:
            response = client.post("/send-pdf-url", json=VALID_SEND)

        assert response.status_code == 400
        assert response.json()["error"] == "userId, number, message, and pdfUrl are required"

    def test_unsupported_scheme_sends_nothing(self, make_client, ready_factory):
        with make_client(ready_factory) as client:
            response = client.post("/send-pdf-url", json={**VALID_SEND, "pdfUrl": "ftp://files.example/invoice.pdf"})

        assert response.status_code == 500
        assert response.json()["type"] == "fetch_error"
        assert ready_factory.latest("tenant-42").sent == []


class TestSendPdfBase64:
    def test_missing_content(self, make_client, fake_factory):
        with make_client(fake_factory) as client:
            response = client.post("/send-pdf-base64", json=VALID_SEND)

        assert response.status_code == 400
        assert response.json()["error"] == "userId, number, message, and pdfBase64 are required"

    def test_sent_with_default_filename(self, make_client, ready_factory):
        with make_client(ready_factory) as client:
            response = client.post("/send-pdf-base64", json={**VALID_SEND, "pdfBase64": "JVBERi0xLjQK"})

        assert response.status_code == 200
        assert response.json() == {"status": "Message and PDF (base64) sent"}
        [(chat_id, media, caption)] = ready_factory.latest("tenant-42").sent
        assert chat_id == CHAT_ID
        assert caption == VALID_SEND["message"]
        assert (media.mimetype, media.data, media.filename) == ("application/pdf", "JVBERi0xLjQK", "document.pdf")


class TestSendImageBase64:
    def test_missing_mime_type(self, make_client, fake_factory):
        with make_client(fake_factory) as client:
            response = client.post("/send-image-base64", json={**VALID_SEND, "imageBase64": "UklGRg=="})

        assert response.status_code == 400
        assert response.json()["error"] == "userId, number, message, imageBase64, and mimeType are required"

    def test_mime_type_passed_through(self, make_client, ready_factory):
        body = {**VALID_SEND, "imageBase64": "UklGRg==", "mimeType": "image/webp", "filename": "ticket.webp"}
        with make_client(ready_factory) as client:
            response = client.post("/send-image-base64", json=body)

        assert response.status_code == 200
        assert response.json() == {"status": "Image (base64) and message sent"}
        [(_, media, caption)] = ready_factory.latest("tenant-42").sent
        assert caption == VALID_SEND["message"]
        assert (media.mimetype, media.data, media.filename) == ("image/webp", "UklGRg==", "ticket.webp")
