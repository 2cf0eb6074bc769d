"""
Tests for the HTTP transport against an in-process aiohttp server.
"""

import asyncio

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from companion_client.core.errors import TransportError, TransportErrorKind
from companion_client.core.session import Identity, SessionStore
from companion_client.core.storage import MemoryStore
from companion_client.core.transport import Transport, unwrap_envelope


def make_backend() -> web.Application:
    app = web.Application()

    async def enveloped(request):
        return web.json_response({"code": 0, "success": True, "status": 200, "data": {"x": 1}})

    async def bare(request):
        return web.json_response({"x": 1})

    async def echo_auth(request):
        return web.json_response({"data": {"authorization": request.headers.get("Authorization")}})

    async def echo_body(request):
        return web.json_response({"data": {"body": await request.json(), "query": dict(request.query)}})

    async def expired(request):
        return web.json_response({"code": 101, "success": False, "message": "token expired"}, status=401)

    async def forbidden(request):
        return web.json_response({"success": False, "status": 403}, status=403)

    async def broken(request):
        return web.Response(text="upstream exploded", status=502)

    async def garbled(request):
        return web.Response(body=b"\xff\xfe{bad", status=500, content_type="application/json")

    async def empty(request):
        return web.Response(status=204)

    async def slow(request):
        await asyncio.sleep(0.5)
        return web.json_response({"data": None})

    async def upload(request):
        form = await request.post()
        file_field = form["file"]
        return web.json_response({"data": {
            "type": form["type"],
            "filename": file_field.filename,
            "size": len(file_field.file.read()),
            "authorization": request.headers.get("Authorization"),
        }})

    app.router.add_get("/enveloped", enveloped)
    app.router.add_get("/bare", bare)
    app.router.add_get("/auth", echo_auth)
    app.router.add_post("/echo", echo_body)
    app.router.add_get("/echo", echo_body)
    app.router.add_get("/expired", expired)
    app.router.add_get("/forbidden", forbidden)
    app.router.add_get("/broken", broken)
    app.router.add_get("/garbled", garbled)
    app.router.add_delete("/empty", empty)
    app.router.add_get("/slow", slow)
    app.router.add_post("/upload", upload)
    return app


@pytest_asyncio.fixture
async def server():
    test_server = TestServer(make_backend())
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest.fixture
def session_store():
    return SessionStore(MemoryStore())


@pytest_asyncio.fixture
async def transport(server, session_store):
    client = Transport(str(server.make_url("")), session_store, timeout=5)
    yield client
    await client.close()


class TestUnwrapEnvelope:
    """Tests for the envelope unwrapping."""

    def test_enveloped_body_yields_data(self):
        assert unwrap_envelope({"code": 0, "data": {"x": 1}}) == {"x": 1}

    def test_body_without_data_passes_through(self):
        assert unwrap_envelope({"x": 1}) == {"x": 1}

    def test_unwrap_is_stable(self):
        once = unwrap_envelope({"code": 0, "data": {"x": 1}})
        assert unwrap_envelope(once) == once

    def test_non_dict_bodies_pass_through(self):
        assert unwrap_envelope([1, 2]) == [1, 2]
        assert unwrap_envelope("text") == "text"
        assert unwrap_envelope(None) is None

    def test_null_data_is_unwrapped(self):
        assert unwrap_envelope({"code": 0, "data": None}) is None


class TestTransport:
    """Tests for requests against the backend."""

    @pytest.mark.asyncio
    async def test_unwraps_envelope(self, transport):
        assert await transport.get("/enveloped") == {"x": 1}

    @pytest.mark.asyncio
    async def test_passes_bare_body_through(self, transport):
        assert await transport.get("/bare") == {"x": 1}

    @pytest.mark.asyncio
    async def test_attaches_bearer_credential(self, transport, session_store):
        session_store.set_state(credential="secret", identity=Identity(id=1))

        result = await transport.get("/auth")

        assert result == {"authorization": "Bearer secret"}

    @pytest.mark.asyncio
    async def test_unauthenticated_call_omits_credential(self, transport, session_store):
        session_store.set_state(credential="secret", identity=Identity(id=1))

        result = await transport.get("/auth", requires_auth=False)

        assert result == {"authorization": None}

    @pytest.mark.asyncio
    async def test_missing_credential_proceeds_unauthenticated(self, transport):
        assert await transport.get("/auth") == {"authorization": None}

    @pytest.mark.asyncio
    async def test_sends_json_body_and_query(self, transport):
        assert await transport.post("/echo", {"content": "hi"}) == {"body": {"content": "hi"}, "query": {}}

    @pytest.mark.asyncio
    async def test_expired_error_carries_status_code_and_body(self, transport):
        with pytest.raises(TransportError) as exc_info:
            await transport.get("/expired")

        error = exc_info.value
        assert error.kind is TransportErrorKind.HTTP_STATUS
        assert error.status == 401
        assert error.code == 101
        assert error.message == "token expired"
        assert error.body["success"] is False

    @pytest.mark.asyncio
    async def test_missing_message_uses_fallback(self, transport):
        with pytest.raises(TransportError) as exc_info:
            await transport.get("/forbidden")

        assert exc_info.value.status == 403
        assert exc_info.value.code is None
        assert exc_info.value.message == "Request failed"

    @pytest.mark.asyncio
    async def test_non_json_error_body_is_kept_raw(self, transport):
        with pytest.raises(TransportError) as exc_info:
            await transport.get("/broken")

        assert exc_info.value.status == 502
        assert exc_info.value.body == "upstream exploded"

    @pytest.mark.asyncio
    async def test_undecodable_error_body_is_transport_error(self, transport):
        with pytest.raises(TransportError) as exc_info:
            await transport.get("/garbled")

        assert exc_info.value.kind == TransportErrorKind.HTTP_STATUS
        assert exc_info.value.status == 500
        assert exc_info.value.body.endswith("{bad")

    @pytest.mark.asyncio
    async def test_empty_success_returns_none(self, transport):
        assert await transport.delete("/empty") is None

    @pytest.mark.asyncio
    async def test_timeout_is_network_failure(self, server, session_store):
        transport = Transport(str(server.make_url("")), session_store, timeout=0.05)
        try:
            with pytest.raises(TransportError) as exc_info:
                await transport.get("/slow")
        finally:
            await transport.close()

        assert exc_info.value.kind is TransportErrorKind.NETWORK
        assert exc_info.value.status is None
        assert exc_info.value.code is None

    @pytest.mark.asyncio
    async def test_connection_failure_is_network_failure(self, session_store):
        transport = Transport("http://127.0.0.1:1", session_store, timeout=2)
        try:
            with pytest.raises(TransportError) as exc_info:
                await transport.get("/anything")
        finally:
            await transport.close()

        assert exc_info.value.is_network_failure
        assert exc_info.value.status is None

    @pytest.mark.asyncio
    async def test_upload_sends_multipart_with_credential(self, transport, session_store, tmp_path):
        session_store.set_state(credential="secret", identity=Identity(id=1))
        image = tmp_path / "bg.png"
        image.write_bytes(b"\x89PNG" + b"\x00" * 12)

        result = await transport.upload("/upload", image, form={"type": "chat"})

        assert result == {
            "type": "chat",
            "filename": "bg.png",
            "size": 16,
            "authorization": "Bearer secret",
        }
