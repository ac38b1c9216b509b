"""Core components: connection, errors, and the script client contract."""

from fm_script_client.core.client import ScriptClient
from fm_script_client.core.connection import Connection
from fm_script_client.core.errors import (
    ConfigurationError,
    FileMakerError,
    InvalidConnectionUrlError,
    MissingAccessTokenError,
    MissingScriptResultError,
    ScriptClientError,
    ScriptFailureError,
    SerializationError,
    TransportError,
    UnknownResponseError,
)

__all__ = [
    "ConfigurationError",
    "Connection",
    "FileMakerError",
    "InvalidConnectionUrlError",
    "MissingAccessTokenError",
    "MissingScriptResultError",
    "ScriptClient",
    "ScriptClientError",
    "ScriptFailureError",
    "SerializationError",
    "TransportError",
    "UnknownResponseError",
]
