# Overview: Shared helpers for API routes; turns store Results into JSON responses.

from ..errors import Result


def error_response(result: Result):
    """({"error": msg}, status) for a failed Result; status follows the error class."""
    error = result.error
    body = {"error": str(error)}
    detail = result.detail
    if detail is not None and hasattr(detail, "to_dict"):
        body["detail"] = detail.to_dict()
    return body, getattr(error, "status_code", 500)


def wants_confirmation(payload: dict, args) -> bool:
    """Deletion confirmation from a JSON body {"confirm": true} or ?confirm=true."""
    if payload.get("confirm") is True:
        return True
    return str(args.get("confirm", "")).lower() in ("1", "true", "yes")
