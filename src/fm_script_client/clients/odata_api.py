"""OData API script client."""

import logging
from typing import Any, TypeVar

import aiohttp
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError, to_json, to_jsonable_python

from fm_script_client.core.client import HttpResponse, ScriptClient
from fm_script_client.core.connection import Connection
from fm_script_client.core.errors import (
    FileMakerError,
    ScriptFailureError,
    SerializationError,
    UnknownResponseError,
)
from fm_script_client.models import ODataErrorBody, ODataResponseBody
from fm_script_client.result import MISSING, from_value

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ODataApiScriptClient(ScriptClient):
    """OData API script client.

    The preferred way to call scripts. Every call is a single stateless
    request authenticated with HTTP basic auth, so one client can be shared
    freely between tasks. Fall back to DataApiScriptClient only if the OData
    API is not available.
    """

    def __init__(
        self,
        connection: Connection,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        super().__init__(connection, session)

    async def execute(
        self,
        script_name: str,
        parameter: Any = None,
        result_type: type[T] = Any,  # type: ignore[assignment]
    ) -> T:
        url = self.connection.build_url(
            f"/fmi/odata/v4/{self.connection.database}/Script.{script_name}"
        )

        body: dict[str, Any] = {}
        if parameter is not None:
            try:
                body["scriptParameterValue"] = to_jsonable_python(parameter)
            except PydanticSerializationError as e:
                raise SerializationError(
                    "Failed to serialize script parameter",
                    details={"script": script_name, "error": str(e)},
                ) from e

        logger.debug("Executing script %r via OData API", script_name)
        response = await self._request("POST", url, json=body, auth=self._basic_auth())

        if not response.ok:
            raise self._error_from_response(response)

        try:
            result = ODataResponseBody.model_validate_json(response.body).script_result
        except ValidationError as e:
            raise SerializationError(
                "Failed to decode OData script response",
                details={"script": script_name, "error": str(e)},
            ) from e

        if result.code != 0:
            raise ScriptFailureError(
                code=result.code,
                data=to_json(result.result_parameter).decode(),
            )

        return from_value(result_type, result.result_parameter if result.has_result else MISSING)

    def _error_from_response(self, response: HttpResponse) -> Exception:
        try:
            error = ODataErrorBody.model_validate_json(response.body).error
        except ValidationError:
            return UnknownResponseError(response.status)
        return FileMakerError(error.code, error.message)
