"""Contract shared by the Data API and OData script clients."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Self, TypeVar

import aiohttp
from yarl import URL

from fm_script_client.core.connection import Connection
from fm_script_client.core.errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_HEADERS = {"Accept": "application/json"}


@dataclass(frozen=True)
class HttpResponse:
    """Fully read HTTP response; the body is kept undecoded."""

    status: int
    headers: Mapping[str, str]
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class ScriptClient(ABC):
    """Executes scripts on a FileMaker server.

    Clients create their own aiohttp session on first use unless one is
    passed in. A session passed in is never closed by the client.
    """

    def __init__(
        self,
        connection: Connection,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.connection = connection
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """HTTP session used for all requests of this client.

        Raises:
            TransportError: An injected session has already been closed.
        """
        if self._session is None or (self._owns_session and self._session.closed):
            self._session = aiohttp.ClientSession()
        elif self._session.closed:
            raise TransportError(
                "HTTP session is closed",
                details={"host": self.connection.hostname},
                suggestion="Pass an open aiohttp.ClientSession or let the client create one",
            )
        return self._session

    @abstractmethod
    async def execute(
        self,
        script_name: str,
        parameter: Any = None,
        result_type: type[T] = Any,  # type: ignore[assignment]
    ) -> T:
        """Execute a script with an optional parameter.

        Args:
            script_name: Name of the FileMaker script.
            parameter: Script parameter, serialized to JSON. None sends no
                parameter at all.
            result_type: Type the script result is decoded into. Use Void for
                scripts without a result. Defaults to the raw JSON value.

        Returns:
            Decoded script result.

        Raises:
            ScriptFailureError: Script reported a non-zero result code.
            FileMakerError: FileMaker rejected the request.
            UnknownResponseError: Unrecognized error response.
            TransportError: Request could not be performed.
            SerializationError: Parameter or result could not be (de)serialized.
        """

    async def execute_without_parameter(
        self,
        script_name: str,
        result_type: type[T] = Any,  # type: ignore[assignment]
    ) -> T:
        """Execute a script without a parameter."""
        return await self.execute(script_name, None, result_type)

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        url: URL,
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
        auth: aiohttp.BasicAuth | None = None,
    ) -> HttpResponse:
        """Perform a request and read the whole response.

        Raises:
            TransportError: Network failure or timeout.
        """
        request_headers = {**DEFAULT_HEADERS, **(headers or {})}

        try:
            async with self.session.request(
                method,
                url,
                json=json,
                headers=request_headers,
                auth=auth,
            ) as resp:
                body = await resp.read()
                logger.debug("%s %s -> %d", method, url.host, resp.status)
                return HttpResponse(status=resp.status, headers=resp.headers, body=body)
        except (TimeoutError, aiohttp.ClientError) as e:
            raise TransportError(
                f"Failed to perform request to {self.connection.hostname}",
                details={"method": method, "host": url.host, "error": str(e)},
                suggestion="Ensure the FileMaker server is reachable",
            ) from e

    def _basic_auth(self) -> aiohttp.BasicAuth:
        return aiohttp.BasicAuth(self.connection.username, self.connection.password)
