"""Transport that authenticates token requests with a signed client assertion."""

import re
from urllib.parse import parse_qsl, urlencode

import httpx

from pkjwt.core.errors import RequestTransformError
from pkjwt.crypto.signer import AssertionSigner
from pkjwt.crypto.types import AssertionClaims

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

_BAD_PERCENT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def parse_form(body: bytes) -> list[tuple[str, str]]:
    """Parse a URL-encoded form body.

    Empty segments are skipped and a key without ``=`` gets an empty value.
    Invalid percent escapes and ``;`` separators are rejected. Bytes that are
    not UTF-8 are carried through as surrogate escapes so that ``encode_form``
    writes them back unchanged.
    """
    if not body:
        return []
    text = body.decode("utf-8", errors="surrogateescape")
    if ";" in text:
        raise RequestTransformError("Request body contains a ';' separator")
    if _BAD_PERCENT_ESCAPE.search(text):
        raise RequestTransformError("Request body has an invalid percent escape")
    return parse_qsl(text, keep_blank_values=True, errors="surrogateescape")


def encode_form(fields: list[tuple[str, str]]) -> bytes:
    return urlencode(fields, errors="surrogateescape").encode("ascii")


def set_form_fields(
    fields: list[tuple[str, str]], updates: dict[str, str]
) -> list[tuple[str, str]]:
    """Replace every value of each updated key, keeping other fields in order."""
    kept = [(k, v) for k, v in fields if k not in updates]
    return kept + list(updates.items())


def replace_body(request: httpx.Request, body: bytes) -> None:
    """Swap the request payload in place and fix up the length header."""
    request.headers.pop("Transfer-Encoding", None)
    request.headers["Content-Length"] = str(len(body))
    request.stream = httpx.ByteStream(body)
    # httpx caches the encoded body; keep it in step with the stream.
    request._content = body


class ClientAssertionTransport(httpx.AsyncBaseTransport):
    """Rewrites each request to authenticate via ``private_key_jwt``.

    A fresh assertion is signed for every request. Any Authorization header
    is dropped and the assertion is added to the form body. The request is
    mutated in place before it is handed to the wrapped transport.
    """

    def __init__(
        self,
        signer: AssertionSigner,
        claims: AssertionClaims,
        transport: httpx.AsyncBaseTransport,
    ) -> None:
        self._signer = signer
        self._claims = claims
        self._transport = transport

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        assertion = self._signer.sign(self._claims)

        request.headers["Content-Type"] = FORM_CONTENT_TYPE
        request.headers.pop("Authorization", None)

        fields = parse_form(await request.aread())
        fields = set_form_fields(
            fields,
            {
                "client_assertion_type": CLIENT_ASSERTION_TYPE,
                "client_assertion": assertion,
            },
        )
        replace_body(request, encode_form(fields))

        return await self._transport.handle_async_request(request)

    async def aclose(self) -> None:
        await self._transport.aclose()
