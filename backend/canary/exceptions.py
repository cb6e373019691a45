"""Domain errors raised by the services and translated to HTTP by the routers."""


class CanaryError(Exception):
    """Base class for all service errors."""


class InvalidPayloadError(CanaryError):
    """A request passed schema validation but its content is unusable."""


class UnauthorizedError(CanaryError):
    """MAC address and authenticator key do not match a registration."""


class DeviceNotFoundError(CanaryError):
    """No registration for the given id or MAC address."""


class DeviceConflictError(CanaryError):
    """The MAC address is already registered."""


class StorageError(CanaryError):
    """A query against the relational store failed."""


class ArtifactStorageError(StorageError):
    """An update bundle could not be written to disk."""


class UpstreamError(CanaryError):
    """The gateway could not get a response from the internal API."""
