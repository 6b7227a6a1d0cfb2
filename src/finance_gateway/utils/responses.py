"""Response metadata and error envelopes for MCP tools."""

from typing import Any

from finance_gateway import SERVER_VERSION


def build_meta(tool: str, duration_ms: float | None = None) -> dict[str, Any]:
    """
    Build standard metadata block for responses.

    Args:
        tool: Name of the tool producing this response
        duration_ms: Execution time in milliseconds (optional)

    Returns:
        Metadata dict with version info
    """
    meta: dict[str, Any] = {
        "server_version": SERVER_VERSION,
        "tool": tool,
    }
    if duration_ms is not None:
        meta["duration_ms"] = round(duration_ms, 1)
    return meta


def build_error_response(
    error_type: str,
    message: str,
    symbol: str | None = None,
) -> dict[str, Any]:
    """
    Build standardized error response.

    Args:
        error_type: Type of error (invalid_parameters, data_unavailable)
        message: Human-readable error message
        symbol: Symbol that caused the error (if applicable)

    Returns:
        Error response dict
    """
    response: dict[str, Any] = {
        "error": True,
        "error_type": error_type,
        "message": message,
        "meta": build_meta("error"),
    }

    if symbol is not None:
        response["symbol"] = symbol

    return response
