"""Error formatting utilities.

Turns the application's error types into short user-facing messages for
the CLI and logs.
"""

import json
from typing import Any


def format_error(error: Any) -> str | None:
    """Format known application errors into user-friendly messages.

    Returns None if the error type is not recognized, allowing
    fallback to format_unknown_error.
    """
    # Imported lazily: the modules below log through util.log.
    from ..api_client.client import ApiClientError
    from ..core.config import ConfigError
    from ..ovpn.errors import ParseFailure, TransferError

    if isinstance(error, ParseFailure):
        return error.detail
    if isinstance(error, TransferError):
        if error.path:
            return f"{error} ({error.path})"
        return str(error)
    if isinstance(error, ConfigError):
        return str(error)
    if isinstance(error, ApiClientError):
        if error.status_code == 0:
            return f"Cannot reach ovpnctl server: {error}"
        return f"Server error ({error.status_code}): {error}"
    return None


def format_unknown_error(error: Any) -> str:
    """Format any error into a string representation.

    Handles Exception objects, serializable objects, and primitives.
    """
    if isinstance(error, Exception):
        import traceback
        if hasattr(error, '__traceback__') and error.__traceback__:
            return ''.join(traceback.format_exception(type(error), error, error.__traceback__))
        return f"{error.__class__.__name__}: {str(error)}"

    if isinstance(error, dict) or isinstance(error, list):
        try:
            return json.dumps(error, indent=2)
        except (TypeError, ValueError):
            return "Unexpected error (unserializable)"

    return str(error)
