"""Data API script client."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any, TypeVar

import aiohttp
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError, to_json
from yarl import URL

from fm_script_client.core.client import HttpResponse, ScriptClient
from fm_script_client.core.connection import Connection
from fm_script_client.core.errors import (
    FileMakerError,
    MissingAccessTokenError,
    ScriptFailureError,
    SerializationError,
    UnknownResponseError,
)
from fm_script_client.models import (
    DataApiErrorBody,
    DataApiFindRequest,
    DataApiResponseBody,
)
from fm_script_client.result import from_string

logger = logging.getLogger(__name__)

T = TypeVar("T")

ACCESS_TOKEN_HEADER = "X-FM-Data-Access-Token"

# FileMaker drops idle sessions after 15 minutes
TOKEN_LIFETIME = 60 * 14

# Data API error code for an unknown or expired session token
INVALID_TOKEN_CODE = "952"


@dataclass(frozen=True)
class ScriptLayoutContext:
    """Find request that Data API script calls ride along with.

    The Data API only runs scripts together with another request. Running a
    script through a standalone GET is possible, but length restricted and
    leaks the parameter into server logs, so scripts are attached to a find
    instead.

    The find must succeed or the whole call fails with a FileMakerError.
    Ideally point it at a small layout with a single field and a single
    record.

    Attributes:
        layout: Layout the find runs on.
        search_field: Field to search.
        search_value: Value matching exactly one record.
    """

    layout: str
    search_field: str
    search_value: str


@dataclass
class SessionToken:
    """Data API session token with its local expiry (monotonic clock)."""

    token: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


class DataApiScriptClient(ScriptClient):
    """Data API script client.

    Only use this client if the OData API is unavailable. Script calls need
    a ScriptLayoutContext describing the find they are attached to.

    The client logs in lazily and keeps the session token for reuse. Each use
    extends the token's lifetime, mirroring the server's idle timeout. Call
    release_token(), or leave the client's async with block, to log out.
    """

    def __init__(
        self,
        connection: Connection,
        context: ScriptLayoutContext,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        super().__init__(connection, session)
        self.context = context
        self._token: SessionToken | None = None
        self._token_lock = asyncio.Lock()

    @property
    def has_token(self) -> bool:
        return self._token is not None

    async def get_token(self) -> str:
        """Return a valid session token, logging in if necessary.

        Token checks and logins are serialized per client, so concurrent
        callers share a single login.

        Raises:
            MissingAccessTokenError: Login response carried no token.
            FileMakerError: Login was rejected.
        """
        async with self._token_lock:
            now = time.monotonic()

            if self._token is not None and not self._token.is_expired(now):
                self._token.expires_at = now + TOKEN_LIFETIME
                logger.debug("Reusing Data API session token for %s", self.connection.database)
                return self._token.token

            url = self._create_url("/sessions")
            response = await self._request("POST", url, json={}, auth=self._basic_auth())

            if not response.ok:
                raise self._error_from_response(response)

            access_token = response.headers.get(ACCESS_TOKEN_HEADER)
            if not access_token:
                raise MissingAccessTokenError()

            self._token = SessionToken(
                token=access_token,
                expires_at=time.monotonic() + TOKEN_LIFETIME,
            )
            logger.info(
                "Acquired Data API session token for %s on %s",
                self.connection.database,
                self.connection.hostname,
            )
            return access_token

    async def release_token(self) -> None:
        """Log out and forget the current session token.

        Returns immediately if no token is held. Otherwise the token is
        forgotten locally and deleted on the server. A failed delete is only
        logged, but a transport error is still raised.
        """
        async with self._token_lock:
            token, self._token = self._token, None

        if token is None:
            return

        url = self._create_url(f"/sessions/{token.token}")
        response = await self._request("DELETE", url)

        if response.ok:
            logger.info("Released Data API session token for %s", self.connection.database)
        else:
            logger.warning(
                "Deleting Data API session token for %s returned HTTP %d",
                self.connection.database,
                response.status,
            )

    async def execute(
        self,
        script_name: str,
        parameter: Any = None,
        result_type: type[T] = Any,  # type: ignore[assignment]
    ) -> T:
        token = await self.get_token()
        url = self._create_url(f"/layouts/{self.context.layout}/_find")

        # The Data API expects the parameter as a JSON string inside the JSON body
        script_param = None
        if parameter is not None:
            try:
                script_param = to_json(parameter).decode()
            except PydanticSerializationError as e:
                raise SerializationError(
                    "Failed to serialize script parameter",
                    details={"script": script_name, "error": str(e)},
                ) from e

        body = DataApiFindRequest(
            query={self.context.search_field: self.context.search_value},
            limit=1,
            script=script_name,
            script_param=script_param,
        )

        logger.debug("Executing script %r via Data API", script_name)
        response = await self._request(
            "POST",
            url,
            json=body.to_payload(),
            headers={"Authorization": f"Bearer {token}"},
        )

        if not response.ok:
            error = self._error_from_response(response)
            if isinstance(error, FileMakerError) and error.code == INVALID_TOKEN_CODE:
                await self._forget_token(token)
            raise error

        try:
            result = DataApiResponseBody.model_validate_json(response.body)
        except ValidationError as e:
            raise SerializationError(
                "Failed to decode Data API script response",
                details={"script": script_name, "error": str(e)},
            ) from e

        if result.script_error != "0":
            try:
                code = int(result.script_error)
            except ValueError:
                code = -1
            raise ScriptFailureError(code=code, data=result.script_result or "")

        return from_string(result_type, result.script_result)

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            await self.release_token()
        finally:
            await self.close()

    async def _forget_token(self, token: str) -> None:
        """Drop the cached token if the server no longer accepts it."""
        async with self._token_lock:
            if self._token is not None and self._token.token == token:
                self._token = None
                logger.info("Discarded rejected Data API session token")

    def _error_from_response(self, response: HttpResponse) -> Exception:
        try:
            messages = DataApiErrorBody.model_validate_json(response.body).messages
        except ValidationError:
            return UnknownResponseError(response.status)
        if not messages:
            return UnknownResponseError(response.status)
        return FileMakerError(messages[0].code, messages[0].message)

    def _create_url(self, path: str) -> URL:
        return self.connection.build_url(
            f"/fmi/data/v1/databases/{self.connection.database}{path}"
        )
