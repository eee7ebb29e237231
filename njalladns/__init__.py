"""njalladns: manage Njalla DNS records through typed record values."""

from njalladns.app.context import Context
from njalladns.app.exceptions import (
    APIError,
    ConfigurationError,
    ConversionError,
    NjallaError,
    ProviderError,
    TransportError,
)
from njalladns.app.provider import Provider
from njalladns.app.records import (
    CNAME,
    MX,
    RR,
    SRV,
    TXT,
    Address,
    ServiceBinding,
)
from njalladns.app.rpc import JSONRPCClient, RetryPolicy

__all__ = [
    "APIError",
    "Address",
    "CNAME",
    "ConfigurationError",
    "Context",
    "ConversionError",
    "JSONRPCClient",
    "MX",
    "NjallaError",
    "Provider",
    "ProviderError",
    "RR",
    "RetryPolicy",
    "SRV",
    "ServiceBinding",
    "TXT",
    "TransportError",
]
