"""Error taxonomy and exchange error-code classification."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Type

logger = logging.getLogger(__name__)


class DeltaError(Exception):
    """Base class for every error raised by the adapter."""

    def __init__(self, message: str = "", *, code: str | None = None, body: str | None = None):
        super().__init__(message)
        self.code = code
        self.body = body


class ExchangeError(DeltaError):
    """Generic exchange failure, carries the raw response body."""


class AuthenticationError(ExchangeError):
    """Raised when the exchange rejects the api key or signature."""


class CredentialsMissing(AuthenticationError):
    """Raised locally when a private call is attempted without an api key."""


class BadRequest(ExchangeError):
    """Raised on schema validation failures and risk-limit breaches."""


class BadSymbol(BadRequest):
    """Raised for unknown or expired contracts."""


class InsufficientFunds(ExchangeError):
    """Raised when available margin is below the requirement."""


class InvalidOrder(ExchangeError):
    """Raised when the exchange refuses an order."""


class OrderNotFound(InvalidOrder):
    """Raised when operating on an order that is no longer open."""


class InvalidAddress(ExchangeError):
    """Raised when a deposit address is missing from a response."""


class ArgumentsRequired(ExchangeError):
    """Raised before any network call when a required argument is missing."""


class NotSupported(ExchangeError):
    """Raised for features the exchange does not offer."""


class NetworkError(DeltaError):
    """Raised when the transport fails to complete a request."""


class OrderSubmissionUncertain(NetworkError):
    """Raised when a non-idempotent order call failed in transit.

    The order may or may not have reached the exchange. Callers must check
    open orders before submitting again.
    """


EXACT_EXCEPTIONS: dict[str, Type[ExchangeError]] = {
    "insufficient_margin": InsufficientFunds,
    "order_size_exceed_available": InvalidOrder,
    "risk_limits_breached": BadRequest,
    "invalid_contract": BadSymbol,
    "immediate_liquidation": InvalidOrder,
    "out_of_bankruptcy": InvalidOrder,
    "self_matching_disrupted_post_only": InvalidOrder,
    "immediate_execution_post_only": InvalidOrder,
    "bad_schema": BadRequest,
    "invalid_api_key": AuthenticationError,
    "invalid_signature": AuthenticationError,
    "open_order_not_found": OrderNotFound,
}

BROAD_EXCEPTIONS: dict[str, Type[ExchangeError]] = {}


class ErrorClassifier:
    """Maps exchange error codes to exception classes.

    Lookup order is exact code, then substring match against the broad
    table, then the generic ExchangeError.
    """

    def __init__(
        self,
        exact: Mapping[str, Type[ExchangeError]] | None = None,
        broad: Mapping[str, Type[ExchangeError]] | None = None,
        *,
        exchange_id: str = "delta",
    ):
        self.exact = dict(EXACT_EXCEPTIONS if exact is None else exact)
        self.broad = dict(BROAD_EXCEPTIONS if broad is None else broad)
        self.exchange_id = exchange_id

    @staticmethod
    def error_code(response: Any) -> str | None:
        """Extract ``error.code`` from a decoded response, if any."""
        if not isinstance(response, dict):
            return None
        error = response.get("error")
        if not isinstance(error, dict):
            return None
        code = error.get("code")
        if code is None:
            return None
        return str(code)

    def match_broad(self, code: str) -> Type[ExchangeError] | None:
        for fragment, exc_class in self.broad.items():
            if fragment in code:
                return exc_class
        return None

    def classify(self, response: Any, body: str) -> ExchangeError | None:
        """Build the exception for a response, or None if it is not an error."""
        code = self.error_code(response)
        if code is None:
            return None

        feedback = f"{self.exchange_id} {body}"
        exc_class = self.exact.get(code) or self.match_broad(code) or ExchangeError
        return exc_class(feedback, code=code, body=body)

    def raise_for_response(self, response: Any, body: str, status: int = 200) -> None:
        """Raise the classified error for a response.

        Args:
            response: Decoded JSON body (None if it was not JSON)
            body: Raw response text
            status: HTTP status code

        Raises:
            ExchangeError: Or one of its subclasses when the response is an error
        """
        error = self.classify(response, body)
        if error is not None:
            logger.warning("%s error %s: %s", self.exchange_id, error.code, type(error).__name__)
            raise error

        if status >= 400:
            raise ExchangeError(f"{self.exchange_id} {status} {body}", body=body)
