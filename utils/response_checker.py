# utils/response_checker.py - turn a Dispatch api response into a payload or a typed failure
from dataclasses import dataclass
from typing import Any, Optional

HTTP_OK = 200


class ApiCallError(Exception):
    kind = "api"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportFailure(ApiCallError):
    """Non-200 status or an unreadable body: a network/server level problem."""
    kind = "transport"

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ApplicationFailure(ApiCallError):
    """The server answered but rejected the call (success flag false)."""
    kind = "application"

    def __init__(self, message: str, server_error: Any = None):
        super().__init__(message)
        self.server_error = server_error


class NotFoundFailure(ApiCallError):
    kind = "not_found"

    def __init__(self, message: str, entity_label: str = ""):
        super().__init__(message)
        self.entity_label = entity_label


@dataclass(frozen=True)
class CheckResult:
    payload: Any = None
    error: Optional[ApiCallError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self):
        if self.error is not None:
            raise self.error
        return self.payload


def evaluate_response(response, extract_data=True, expect_non_empty=False, entity_label="") -> CheckResult:
    """
    Validate a response without raising.

    Checks run in order and the first failure wins:
      1. HTTP status must be 200 (the body is not touched otherwise)
      2. the json body must carry a truthy `success`
      3. with expect_non_empty, `data` must hold at least one record
    """
    status = response.status_code
    if status != HTTP_OK:
        return CheckResult(error=TransportFailure(f"API call system failure, status: {status}", status=status))

    try:
        body = response.json()
    except ValueError:
        return CheckResult(error=TransportFailure(
            f"API call system failure, status: {status}, error: response body is not valid JSON", status=status))
    if not isinstance(body, dict):
        return CheckResult(error=TransportFailure(
            f"API call system failure, status: {status}, error: unexpected response shape", status=status))

    if not body.get("success"):
        server_error = body.get("error")
        return CheckResult(error=ApplicationFailure(f"API call failed, error: {server_error}", server_error=server_error))

    data = body.get("data")
    if expect_non_empty and not data:
        return CheckResult(error=NotFoundFailure(f"Couldn't find an active {entity_label} to use",
                                                 entity_label=entity_label))

    return CheckResult(payload=data if extract_data else body)


def check_response(response, extract_data=True, expect_non_empty=False, entity_label=""):
    return evaluate_response(response, extract_data, expect_non_empty, entity_label).unwrap()
