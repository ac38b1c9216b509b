"""Async client to execute scripts on FileMaker servers through Data and OData API."""

from fm_script_client.clients import (
    DataApiScriptClient,
    ODataApiScriptClient,
    ScriptLayoutContext,
)
from fm_script_client.config import ClientConfig, create_client, load_config
from fm_script_client.core import (
    ConfigurationError,
    Connection,
    FileMakerError,
    InvalidConnectionUrlError,
    MissingAccessTokenError,
    MissingScriptResultError,
    ScriptClient,
    ScriptClientError,
    ScriptFailureError,
    SerializationError,
    TransportError,
    UnknownResponseError,
)
from fm_script_client.result import Void

__all__ = [
    "ClientConfig",
    "ConfigurationError",
    "Connection",
    "DataApiScriptClient",
    "FileMakerError",
    "InvalidConnectionUrlError",
    "MissingAccessTokenError",
    "MissingScriptResultError",
    "ODataApiScriptClient",
    "ScriptClient",
    "ScriptClientError",
    "ScriptFailureError",
    "ScriptLayoutContext",
    "SerializationError",
    "TransportError",
    "UnknownResponseError",
    "Void",
    "create_client",
    "load_config",
]
