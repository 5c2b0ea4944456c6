"""NFT current-user resolution through trusted rental proxies.

Resolves whether a token is held by a rental proxy contract and, if so, which
account is borrowing it.
"""

from .config import NiftyRentConfig, load_config
from .contracts import TokenRecord, Web3ContractProvider
from .errors import ConfigurationError, NiftyRentError, RemoteQueryError
from .registry import TrustRegistry
from .resolver import NiftyRent

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "NiftyRent",
    "NiftyRentConfig",
    "NiftyRentError",
    "RemoteQueryError",
    "TokenRecord",
    "TrustRegistry",
    "Web3ContractProvider",
    "load_config",
]
