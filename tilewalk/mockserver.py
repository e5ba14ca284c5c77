"""A local HTTP server that answers only the requests it was told to anticipate."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Union

from aiohttp import web

log = logging.getLogger(__name__)


class UnexpectedRequestsError(RuntimeError):
    """Raised on close when the server received requests nobody anticipated."""

    def __init__(self, urls: list[str]) -> None:
        super().__init__("there are unexpected requests")
        self.urls = list(urls)


@dataclass
class _Expectation:
    payload: asyncio.Future
    request: asyncio.Future


class AnticipatedRequest:
    """An HTTP request that is anticipated to arrive at the server."""

    def __init__(self, url: str, expectation: _Expectation) -> None:
        self.url = url
        self._expectation = expectation
        self._expected = False

    def _send(self, response: web.Response) -> None:
        if self._expectation.payload.done():
            raise RuntimeError(f"response for '{self.url}' was already given")
        self._expectation.payload.set_result(response)

    async def respond(self, payload: Union[bytes, str]) -> None:
        """Respond with the payload now, or as soon as the request arrives."""
        log.info("Saving response for '%s'.", self.url)
        if isinstance(payload, str):
            payload = payload.encode()
        self._send(web.Response(body=bytes(payload)))

    async def respond_with_status(self, status: int) -> None:
        """Respond with the given status and an empty body."""
        log.info("Saving response (with status: %s) for '%s'.", status, self.url)
        self._send(web.Response(status=int(status), body=b""))

    async def expect(self) -> web.BaseRequest:
        """Wait for the request to arrive, without responding to it."""
        log.info("Expecting '%s'.", self.url)
        if self._expected:
            raise RuntimeError("this request was already expected")
        self._expected = True
        return await self._expectation.request


class Server:
    """HTTP server where every request must be anticipated.

    Requests nobody anticipated get status 418, and make `close` raise
    UnexpectedRequestsError.
    """

    def __init__(self) -> None:
        self._expectations: dict[str, _Expectation] = {}
        self._pending: list[_Expectation] = []
        self._unexpected: list[str] = []
        self._runner: Optional[web.ServerRunner] = None
        self._port = 0

    @classmethod
    async def bind(cls) -> Server:
        """Create a server listening on a random local port."""
        server = cls()
        await server._start()
        return server

    async def _start(self) -> None:
        self._runner = web.ServerRunner(web.Server(self._handle))
        await self._runner.setup()
        site = web.TCPSite(self._runner, "127.0.0.1", 0)
        await site.start()
        self._port = self._runner.addresses[0][1]

    @property
    def port(self) -> int:
        """Port this server listens on."""
        return self._port

    @property
    def unexpected(self) -> list[str]:
        """URLs of requests that were not anticipated."""
        return list(self._unexpected)

    async def anticipate(self, url: str) -> AnticipatedRequest:
        """Anticipate a request for the path, without responding or waiting for it."""
        log.info("Anticipating '%s'.", url)
        if url in self._expectations:
            raise RuntimeError("already anticipating")
        loop = asyncio.get_running_loop()
        expectation = _Expectation(payload=loop.create_future(), request=loop.create_future())
        self._expectations[url] = expectation
        self._pending.append(expectation)
        return AnticipatedRequest(url, expectation)

    async def _handle(self, request: web.BaseRequest) -> web.StreamResponse:
        log.info("Incoming request '%s'.", request.rel_url)
        expectation = self._expectations.pop(request.rel_url.raw_path, None)
        if expectation is None:
            log.warning("Unexpected '%s'.", request.rel_url)
            self._unexpected.append(str(request.rel_url))
            return web.Response(status=418, body=b"unexpected")

        if not expectation.request.done():
            expectation.request.set_result(request)
        response = await expectation.payload
        log.info("Responding to '%s' with %s.", request.rel_url, response.status)
        return response

    async def close(self) -> None:
        """Stop the server; raise UnexpectedRequestsError if any request was unexpected."""
        for expectation in self._pending:
            for future in (expectation.payload, expectation.request):
                if not future.done():
                    future.cancel()
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        if self._unexpected:
            raise UnexpectedRequestsError(self._unexpected)

    async def __aenter__(self) -> Server:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()