"""Delta Exchange adapter and connectivity layer."""

from .base import AiohttpTransport, ProxyConfig
from .catalog import Catalog, CurrencyCatalog, MarketCatalog
from .delta import DeltaClient, OrderListEndpoint
from .errors import (
    ArgumentsRequired,
    AuthenticationError,
    BadRequest,
    BadSymbol,
    CredentialsMissing,
    DeltaError,
    ErrorClassifier,
    ExchangeError,
    InsufficientFunds,
    InvalidAddress,
    InvalidOrder,
    NetworkError,
    NotSupported,
    OrderNotFound,
    OrderSubmissionUncertain,
)
from .factory import create_client_from_settings, create_delta_client
from .models import ContractKind, Currency, Market
from .protocol import HttpResponse, HttpTransport
from .signer import RequestSigner, SignedRequest

__all__ = [
    "AiohttpTransport",
    "ProxyConfig",
    "Catalog",
    "CurrencyCatalog",
    "MarketCatalog",
    "DeltaClient",
    "OrderListEndpoint",
    "ArgumentsRequired",
    "AuthenticationError",
    "BadRequest",
    "BadSymbol",
    "CredentialsMissing",
    "DeltaError",
    "ErrorClassifier",
    "ExchangeError",
    "InsufficientFunds",
    "InvalidAddress",
    "InvalidOrder",
    "NetworkError",
    "NotSupported",
    "OrderNotFound",
    "OrderSubmissionUncertain",
    "create_client_from_settings",
    "create_delta_client",
    "ContractKind",
    "Currency",
    "Market",
    "HttpResponse",
    "HttpTransport",
    "RequestSigner",
    "SignedRequest",
]
