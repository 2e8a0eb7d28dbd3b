"""
Error bodies for the Vhagar API.

Every error response has the shape
``{"success": false, "error": {"code", "message"[, "details"]}}``.
Codes match ``StakingError.code`` so library errors pass through unchanged.
"""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from vhagar.errors import StakingError


# Error codes by category
ERROR_CODES = {
    # Validation
    "VAL_001": "Invalid request",
    "VAL_002": "Invalid lock tier",
    "VAL_003": "Invalid lock slot",
    "VAL_004": "Invalid lock window",

    # Accounts
    "ACCT_001": "Token account not initialized",

    # External services
    "EXT_001": "Staking program call failed",
    "EXT_002": "Audit delivery failed",

    # System
    "SYS_001": "Staking error",
    "SYS_002": "Resource not found",
    "SYS_003": "Internal server error",
    "CFG_001": "Staking program not configured",
}

# Codes used for plain HTTP errors raised by FastAPI itself
HTTP_STATUS_CODES = {
    400: "VAL_001",
    404: "SYS_002",
    422: "VAL_001",
    503: "CFG_001",
}


def make_error_response(
    error_code: str,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Error body for ``error_code``; the catalogue text is the fallback message."""
    error: Dict[str, Any] = {
        "code": error_code,
        "message": message or ERROR_CODES.get(error_code, "Unknown error"),
    }
    if details:
        error["details"] = details
    return {"success": False, "error": error}


def fastapi_error(
    error_code: str,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    http_status: int = 400,
) -> JSONResponse:
    return JSONResponse(status_code=http_status, content=make_error_response(error_code, message, details))


def http_error_code(status_code: int) -> str:
    return HTTP_STATUS_CODES.get(status_code, "SYS_003")


def staking_error_response(exc: StakingError) -> JSONResponse:
    """Translate a StakingError into its HTTP response."""
    return fastapi_error(exc.code, exc.message, exc.details or None, exc.status_code)
