"""Error kinds raised by niftyrent."""


class NiftyRentError(Exception):
    """Base class for resolution failures."""

    pass


class ConfigurationError(NiftyRentError):
    """Required setup is missing: no contract address, or not initialized."""

    pass


class RemoteQueryError(NiftyRentError):
    """A token or borrower lookup failed on the contract layer."""

    pass
