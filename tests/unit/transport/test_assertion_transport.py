"""Tests for the client assertion transport."""

from urllib.parse import parse_qsl

import httpx
import jwt
import pytest

from pkjwt.core.errors import RequestTransformError, SigningError
from pkjwt.crypto.signer import AssertionSigner
from pkjwt.crypto.types import AssertionClaims, KeyMaterial
from pkjwt.transport.assertion import (
    CLIENT_ASSERTION_TYPE,
    ClientAssertionTransport,
    encode_form,
    parse_form,
    set_form_fields,
)

TOKEN_URL = "http://localhost:8080/auth/realms/master/protocol/openid-connect/token"


class _Recorder:
    """Inner transport handler that keeps what it was sent."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, json={"access_token": "at"})

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def form(self) -> list[tuple[str, str]]:
        return parse_qsl(self.last.content.decode(), keep_blank_values=True)


@pytest.fixture
def recorder() -> _Recorder:
    return _Recorder()


@pytest.fixture
def transport(
    signer: AssertionSigner, claims: AssertionClaims, recorder: _Recorder
) -> ClientAssertionTransport:
    return ClientAssertionTransport(signer, claims, httpx.MockTransport(recorder))


class TestClientAssertionTransport:
    """Tests for request rewriting."""

    async def test_replaces_bearer_with_assertion(
        self, transport: ClientAssertionTransport, recorder: _Recorder
    ) -> None:
        async with httpx.AsyncClient(transport=transport) as client:
            await client.post(TOKEN_URL, headers={"Authorization": "Bearer xyz"})

        sent = recorder.last
        assert "authorization" not in sent.headers
        assert sent.headers["content-type"] == "application/x-www-form-urlencoded"
        form = dict(recorder.form())
        assert set(form) == {"client_assertion_type", "client_assertion"}
        assert form["client_assertion_type"] == CLIENT_ASSERTION_TYPE

    async def test_strips_basic_auth(
        self, transport: ClientAssertionTransport, recorder: _Recorder
    ) -> None:
        async with httpx.AsyncClient(transport=transport) as client:
            await client.post(
                TOKEN_URL, data={"grant_type": "client_credentials"}, auth=("id", "")
            )
        assert "authorization" not in recorder.last.headers

    async def test_keeps_existing_fields_in_order(
        self, transport: ClientAssertionTransport, recorder: _Recorder
    ) -> None:
        async with httpx.AsyncClient(transport=transport) as client:
            await client.post(
                TOKEN_URL, data={"grant_type": "client_credentials", "scope": "a b"}
            )
        keys = [k for k, _ in recorder.form()]
        assert keys == [
            "grant_type",
            "scope",
            "client_assertion_type",
            "client_assertion",
        ]
        assert dict(recorder.form())["scope"] == "a b"

    async def test_content_length_matches_body(
        self, transport: ClientAssertionTransport, recorder: _Recorder
    ) -> None:
        async with httpx.AsyncClient(transport=transport) as client:
            await client.post(TOKEN_URL, data={"grant_type": "client_credentials"})
        sent = recorder.last
        assert int(sent.headers["content-length"]) == len(sent.content)

    async def test_replaces_stale_assertion_fields(
        self, transport: ClientAssertionTransport, recorder: _Recorder
    ) -> None:
        async with httpx.AsyncClient(transport=transport) as client:
            await client.post(
                TOKEN_URL,
                content=b"client_assertion=old&client_assertion_type=old",
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        form = recorder.form()
        assert [k for k, _ in form].count("client_assertion") == 1
        assert dict(form)["client_assertion"] != "old"

    async def test_assertion_is_verifiable(
        self,
        transport: ClientAssertionTransport,
        recorder: _Recorder,
        key_material: KeyMaterial,
    ) -> None:
        async with httpx.AsyncClient(transport=transport) as client:
            await client.post(TOKEN_URL)
        assertion = dict(recorder.form())["client_assertion"]
        header = jwt.get_unverified_header(assertion)
        assert header["kid"] == key_material.kid
        decoded = jwt.decode(
            assertion,
            key_material.private_key.public_key(),
            algorithms=["RS256"],
            audience="http://localhost:8080/auth/realms/master",
        )
        assert decoded["sub"] == "telemeter"

    async def test_fresh_assertion_per_request(
        self, transport: ClientAssertionTransport, recorder: _Recorder
    ) -> None:
        async with httpx.AsyncClient(transport=transport) as client:
            await client.post(TOKEN_URL)
            await client.post(TOKEN_URL)
        first, second = (
            dict(parse_qsl(r.content.decode()))["client_assertion"]
            for r in recorder.requests
        )
        assert first != second

    async def test_mutates_request_in_place(
        self, transport: ClientAssertionTransport, recorder: _Recorder
    ) -> None:
        request = httpx.Request("POST", TOKEN_URL, headers={"Authorization": "Bearer xyz"})
        await transport.handle_async_request(request)
        assert recorder.last is request
        assert "authorization" not in request.headers
        assert b"client_assertion=" in request.content

    async def test_malformed_form_aborts_request(
        self, transport: ClientAssertionTransport, recorder: _Recorder
    ) -> None:
        request = httpx.Request("POST", TOKEN_URL, content=b"grant_type=x&%zz=1")
        with pytest.raises(RequestTransformError):
            await transport.handle_async_request(request)
        assert recorder.requests == []

    async def test_loose_form_is_accepted(
        self, transport: ClientAssertionTransport, recorder: _Recorder
    ) -> None:
        body = "grant_type=client_credentials&&flag&name=é&".encode()
        request = httpx.Request("POST", TOKEN_URL, content=body)
        await transport.handle_async_request(request)
        assert recorder.last is request
        form = dict(recorder.form())
        assert form["grant_type"] == "client_credentials"
        assert form["flag"] == ""
        assert form["name"] == "é"
        assert "client_assertion" in form

    async def test_semicolon_separator_aborts_request(
        self, transport: ClientAssertionTransport, recorder: _Recorder
    ) -> None:
        request = httpx.Request("POST", TOKEN_URL, content=b"a=1;b=2")
        with pytest.raises(RequestTransformError):
            await transport.handle_async_request(request)
        assert recorder.requests == []

    async def test_signing_failure_aborts_request(
        self, signer: AssertionSigner, recorder: _Recorder
    ) -> None:
        transport = ClientAssertionTransport(
            signer,
            AssertionClaims(subject="", audience=["x"]),
            httpx.MockTransport(recorder),
        )
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(SigningError):
                await client.post(TOKEN_URL, data={"grant_type": "client_credentials"})
        assert recorder.requests == []


class TestParseForm:
    """Tests for form body parsing."""

    def test_empty_body(self) -> None:
        assert parse_form(b"") == []

    def test_decodes_pairs(self) -> None:
        assert parse_form(b"a=1&b=x+y&c=%2F&d=") == [
            ("a", "1"),
            ("b", "x y"),
            ("c", "/"),
            ("d", ""),
        ]

    @pytest.mark.parametrize(
        ("body", "expected"),
        [
            (b"grant_type=client_credentials&", [("grant_type", "client_credentials")]),
            (b"a=1&&b=2", [("a", "1"), ("b", "2")]),
            (b"&", []),
            (b"flag", [("flag", "")]),
            (b"=v", [("", "v")]),
            (b"a=\xc3\xa9", [("a", "é")]),
        ],
    )
    def test_accepts_loose_forms(
        self, body: bytes, expected: list[tuple[str, str]]
    ) -> None:
        assert parse_form(body) == expected

    @pytest.mark.parametrize("body", [b"a=%G1", b"a=%", b"%zz=1", b"a=1;b=2"])
    def test_rejects_malformed(self, body: bytes) -> None:
        with pytest.raises(RequestTransformError):
            parse_form(body)

    @pytest.mark.parametrize("body", [b"a=\xff\xfe", b"a=%FF%FE"])
    def test_non_utf8_bytes_survive_reencoding(self, body: bytes) -> None:
        assert encode_form(parse_form(body)) == b"a=%FF%FE"


class TestSetFormFields:
    """Tests for form field replacement."""

    def test_replaces_all_values_of_key(self) -> None:
        fields = [("a", "1"), ("b", "2"), ("a", "3")]
        assert set_form_fields(fields, {"a": "9"}) == [("b", "2"), ("a", "9")]
