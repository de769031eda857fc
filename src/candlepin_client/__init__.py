"""Python client for the Candlepin entitlement service."""

from ._version import __version__
from .client import BasicAuthClient, CertificateClient, NoAuthClient, OAuthClient
from .config import (
    BasicAuthClientConfig,
    CertificateClientConfig,
    ClientConfig,
    OAuthClientConfig,
    options_from_env,
)
from .exceptions import (
    CandlepinError,
    ConfigurationError,
    ConstructionConflictError,
    MissingKeyError,
    ServerError,
    TransportError,
)
from .logging_config import configure_logging, get_logger
from .models import Consumer, IdentityCertificate
from .options import camel_case, camelize_keys, merge_defaults, select_subset
from .request_options import RequestOptions
from .transport import JSONTransport

__all__ = [
    "BasicAuthClient",
    "BasicAuthClientConfig",
    "CandlepinError",
    "CertificateClient",
    "CertificateClientConfig",
    "ClientConfig",
    "ConfigurationError",
    "ConstructionConflictError",
    "Consumer",
    "IdentityCertificate",
    "JSONTransport",
    "MissingKeyError",
    "NoAuthClient",
    "OAuthClient",
    "OAuthClientConfig",
    "RequestOptions",
    "ServerError",
    "TransportError",
    "__version__",
    "camel_case",
    "camelize_keys",
    "configure_logging",
    "get_logger",
    "merge_defaults",
    "options_from_env",
    "select_subset",
]
