"""
HCX Error Taxonomy

Separates failures by how callers should react:
- TransportError: network/IO failure or a status outside the accepted set
- AuthError: missing admin credentials, rejected login
- NotFoundError: a lookup completed but matched nothing
- OperationFailed: a job, task or SDDC transition reached a failure state
- CompositionError: a cross reference needed to build a request body is missing

Also maps the structured error body returned by the site pairing endpoint
to a classification with recovery guidance.
"""

from typing import Any, Dict, List, Optional


class HcxError(Exception):
    """Base exception for HCX operations"""

    def __init__(self, message: str, error_code: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(self.message)


class TransportError(HcxError):
    """Network failure, or a response status the backend does not accept"""


class AuthError(HcxError):
    """Authentication could not be established"""


class NotFoundError(HcxError):
    """Raised when a name or id lookup finds no exact match"""

    def __init__(self, kind: str, key: str, scope: Optional[str] = None):
        where = f" in {scope}" if scope else ""
        super().__init__(f"Cannot find {kind} '{key}'{where}", error_code="NOT_FOUND")
        self.kind = kind
        self.key = key


class OperationFailed(HcxError):
    """Raised when an asynchronous operation reaches a failure terminal state"""

    def __init__(self, message: str, operation_id: Optional[str] = None, error_code: Optional[str] = None):
        super().__init__(message, error_code=error_code or "OPERATION_FAILED")
        self.operation_id = operation_id


class CompositionError(HcxError):
    """A required cross reference could not be resolved before body assembly"""


class InvalidInputError(HcxError):
    """Caller supplied configuration that cannot be acted on"""


class OperationCancelled(HcxError):
    """Raised when the caller signals cancellation during a wait"""

    def __init__(self, message: str):
        super().__init__(message, error_code="CANCELLED")


class HcxErrorCodes:
    """
    Known error shapes on the site pairing endpoint and their handling.
    """

    LOGIN_FAILURE = {
        "code": "LOGIN_FAILURE",
        "message": "Remote site rejected the pairing credentials.",
        "retry": False,
    }

    CERTIFICATE_UNTRUSTED = {
        "code": "CERTIFICATE_UNTRUSTED",
        "message": "Remote site presented a certificate that is not trusted yet. Install it and retry.",
        "retry": True,
    }

    UNKNOWN = {
        "code": "UNKNOWN",
        "message": "Unknown error(s) returned by the remote site.",
        "retry": False,
    }


# Marker the sessions endpoint returns while SSO trust is not configured
CERTIFICATE_NOT_TRUSTED_MESSAGE = "'Trusted root certificates' value should not be empty"

LOGIN_FAILURE_ERROR = "Login failure"


def map_hcx_error(error_response: Dict[str, Any]) -> Dict[str, Any]:
    """
    Classify the ``errors`` list of a site pairing response.

    Args:
        error_response: Parsed response body containing an ``errors`` array

    Returns:
        dict with keys: code, message, retry, plus ``certificate`` for untrusted
        certificates and ``errors`` with every entry for diagnostics
    """
    errors: List[Dict[str, Any]] = error_response.get("errors") or []
    if not errors:
        return {}

    first_error = errors[0]

    if first_error.get("error") == LOGIN_FAILURE_ERROR:
        return {
            **HcxErrorCodes.LOGIN_FAILURE,
            "message": first_error.get("text") or HcxErrorCodes.LOGIN_FAILURE["message"],
            "errors": errors,
        }

    data = first_error.get("data") or []
    if data and isinstance(data[0], dict):
        certificate = data[0].get("certificate")
        if isinstance(certificate, str) and certificate:
            return {
                **HcxErrorCodes.CERTIFICATE_UNTRUSTED,
                "certificate": certificate,
                "errors": errors,
            }

    return {
        **HcxErrorCodes.UNKNOWN,
        "message": f"Unknown error(s): {errors}",
        "errors": errors,
    }
