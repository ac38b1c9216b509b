"""Script clients for the FileMaker Data API and OData API."""

from fm_script_client.clients.data_api import (
    DataApiScriptClient,
    ScriptLayoutContext,
    SessionToken,
)
from fm_script_client.clients.odata_api import ODataApiScriptClient

__all__ = [
    "DataApiScriptClient",
    "ODataApiScriptClient",
    "ScriptLayoutContext",
    "SessionToken",
]
