from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Mapping

from flask import jsonify, request

from ..core.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    ConflictError,
    DeviceNotApprovedError,
    DomainError,
    InfrastructureError,
    NotFoundError,
    UpstreamTimeoutError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_DOMAIN_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    AlreadyCheckedInError: 409,
    AlreadyCheckedOutError: 409,
    ConflictError: 409,
    DeviceNotApprovedError: 403,
}


def _status_for(exc: DomainError) -> int:
    for cls in type(exc).__mro__:
        if cls in _DOMAIN_STATUS:
            return _DOMAIN_STATUS[cls]
    return 400


def json_body() -> Mapping[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, Mapping):
        raise ValidationError("Request body must be a JSON object")
    return data


def json_endpoint(view):
    """Map domain and infrastructure failures to JSON error responses.

    Domain errors are the caller's problem and carry a stable ``error`` kind;
    infrastructure errors are logged with a traceback and reported as retryable.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            logger.info("rejected %s %s kind=%s: %s", request.method, request.path, e.kind, e)
            payload = {"error": e.kind, "msg": str(e)}
            if isinstance(e, DeviceNotApprovedError) and e.verdict is not None:
                payload["verdict"] = e.verdict.value
            return jsonify(payload), _status_for(e)
        except InfrastructureError as e:
            logger.exception("infrastructure failure on %s %s", request.method, request.path)
            status = 504 if isinstance(e, UpstreamTimeoutError) else 503
            return jsonify({"error": e.kind, "msg": f"{e}. Please try again later."}), status
        except Exception:
            logger.exception("unhandled error on %s %s", request.method, request.path)
            return jsonify({"error": "server_error", "msg": "Server error"}), 500

    return wrapper
