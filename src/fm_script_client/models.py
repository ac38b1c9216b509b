"""Pydantic models for Data API and OData request/response bodies."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FileMakerMessage(BaseModel):
    """Request-level error reported by FileMaker."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    code: str
    message: str


# =============================================================================
# OData API
# =============================================================================


class ODataScriptResult(BaseModel):
    """Outcome of an OData script call."""

    model_config = ConfigDict(populate_by_name=True)

    code: int
    result_parameter: Any = Field(default=None, alias="resultParameter")

    @property
    def has_result(self) -> bool:
        """Whether the server sent a resultParameter at all (null included)."""
        return "result_parameter" in self.model_fields_set


class ODataResponseBody(BaseModel):
    """Successful OData script response."""

    model_config = ConfigDict(populate_by_name=True)

    script_result: ODataScriptResult = Field(alias="scriptResult")


class ODataErrorBody(BaseModel):
    """OData error response."""

    error: FileMakerMessage


# =============================================================================
# Data API
# =============================================================================


class DataApiFindRequest(BaseModel):
    """Find request carrying a script call."""

    model_config = ConfigDict(populate_by_name=True)

    query: dict[str, str]
    limit: int = 1
    script: str
    script_param: str | None = Field(default=None, alias="script.param")

    def to_payload(self) -> dict[str, Any]:
        """Wire representation; script.param is left out when unset."""
        return self.model_dump(by_alias=True, exclude_none=True)


class DataApiResponseBody(BaseModel):
    """Successful Data API find response with script outcome."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    script_result: str | None = Field(default=None, alias="scriptResult")
    script_error: str = Field(alias="scriptError")

    @model_validator(mode="before")
    @classmethod
    def _unwrap_response(cls, data: Any) -> Any:
        # Servers may nest the script outcome in the standard "response" envelope
        if isinstance(data, dict) and "scriptError" not in data:
            inner = data.get("response")
            if isinstance(inner, dict):
                return inner
        return data


class DataApiErrorBody(BaseModel):
    """Data API error response."""

    messages: list[FileMakerMessage]
