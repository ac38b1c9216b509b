"""Decoding of raw script results into caller-specified types."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Final, TypeVar

from pydantic import TypeAdapter, ValidationError

from fm_script_client.core.errors import MissingScriptResultError, SerializationError

T = TypeVar("T")


@dataclass(frozen=True)
class Void:
    """Result type for scripts that return nothing meaningful.

    Decodes successfully whatever the script returned, including nothing.
    """


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final[Any] = _Missing()
"""Marks an absent script result in from_value (None is a JSON null)."""


@lru_cache(maxsize=256)
def _cached_adapter(result_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(result_type)


def _adapter(result_type: Any) -> TypeAdapter[Any]:
    """Validator for result_type, built once per hashable type."""
    try:
        return _cached_adapter(result_type)
    except TypeError:
        # Unhashable annotations, e.g. Annotated with unhashable metadata
        return TypeAdapter(result_type)


def from_string(result_type: type[T], script_result: str | None) -> T:
    """Decode a script result delivered as JSON text.

    Args:
        result_type: Type to decode into. Anything pydantic can validate.
        script_result: Raw JSON text, or None if the script returned nothing.

    Returns:
        Decoded value.

    Raises:
        MissingScriptResultError: No result present and result_type is not Void.
        SerializationError: Text is not valid JSON for result_type.
    """
    if result_type is Void:
        return Void()  # type: ignore[return-value]
    if script_result is None:
        raise MissingScriptResultError()

    try:
        return _adapter(result_type).validate_json(script_result)
    except ValidationError as e:
        raise SerializationError(
            "Failed to decode script result",
            details={"result_type": repr(result_type), "error": str(e)},
        ) from e


def from_value(result_type: type[T], script_result: Any = MISSING) -> T:
    """Decode an already-parsed script result.

    Args:
        result_type: Type to decode into.
        script_result: Decoded JSON value, or MISSING if absent.

    Returns:
        Decoded value.

    Raises:
        MissingScriptResultError: No result present and result_type is not Void.
        SerializationError: Value does not validate against result_type.
    """
    if result_type is Void:
        return Void()  # type: ignore[return-value]
    if script_result is MISSING:
        raise MissingScriptResultError()

    try:
        return _adapter(result_type).validate_python(script_result)
    except ValidationError as e:
        raise SerializationError(
            "Failed to decode script result",
            details={"result_type": repr(result_type), "error": str(e)},
        ) from e
