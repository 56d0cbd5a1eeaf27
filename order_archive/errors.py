from __future__ import annotations


class DecodeError(ValueError):
    """
    The inbound envelope could not be turned into a JSON value.

    Raised for a missing envelope, a missing/empty `data` field, invalid base64,
    non UTF-8 bytes, or text that is not JSON.
    """


class ConfigError(RuntimeError):
    pass


def exc_code(exc: BaseException) -> str:
    """
    Best-effort extraction of a stable Google/gRPC error code string.

    google.api_core errors carry `grpc_status_code` (e.g. UNAVAILABLE) next to
    an HTTP-style `code`; prefer the gRPC one.
    """
    try:
        code = getattr(exc, "grpc_status_code", None) or getattr(exc, "code", None)
        if callable(code):
            code = code()
        if code is None:
            return ""
        # grpc.StatusCode has a `.name`
        name = getattr(code, "name", None)
        if isinstance(name, str) and name.strip():
            return name.strip().upper()
        return str(code).strip().upper()
    except Exception:
        return ""
