"""Transport that records full request/response exchanges for debugging."""

import httpx
import structlog

from pkjwt.core.logging import get_logger


def _dump_headers(headers: httpx.Headers) -> list[str]:
    return [f"{name}: {value}" for name, value in headers.multi_items()]


def _dump_body(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def dump_request(request: httpx.Request) -> str:
    """Render a request the way it would appear on the wire."""
    target = request.url.raw_path.decode("ascii")
    lines = [f"{request.method} {target} HTTP/1.1"]
    lines.extend(_dump_headers(request.headers))
    body = b"".join(request.stream) if isinstance(request.stream, httpx.ByteStream) else b""
    return "\r\n".join(lines) + "\r\n\r\n" + _dump_body(body)


def dump_response(response: httpx.Response) -> str:
    """Render a response the way it would appear on the wire."""
    lines = [f"HTTP/1.1 {response.status_code} {response.reason_phrase}"]
    lines.extend(_dump_headers(response.headers))
    return "\r\n".join(lines) + "\r\n\r\n" + _dump_body(response.content)


class DiagnosticTransport(httpx.AsyncBaseTransport):
    """Logs every request sent through the wrapped transport and its response.

    Errors from the wrapped transport, including those raised while reading
    the response body, are logged and re-raised untouched.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._transport = transport
        self._logger = logger or get_logger("pkjwt.http")

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        try:
            response = await self._transport.handle_async_request(request)
            await response.aread()
        except Exception as exc:
            self._logger.error(
                "http_transport_error",
                method=request.method,
                url=str(request.url),
                error=repr(exc),
            )
            raise

        self._logger.info("http_request", dump=dump_request(request))
        self._logger.info("http_response", dump=dump_response(response))
        return response

    async def aclose(self) -> None:
        await self._transport.aclose()
