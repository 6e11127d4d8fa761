"""
Error taxonomy for DoseKeeper
"""


class DoseKeeperError(Exception):
    """Base class for all DoseKeeper errors"""


class NotFoundError(DoseKeeperError, LookupError):
    """A referenced medication or history entry does not exist"""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class PermissionDeniedError(DoseKeeperError):
    """Notification permission has not been granted"""


class InvalidRuleError(DoseKeeperError, ValueError):
    """A dosing rule payload is malformed (bad HH:MM, interval < 1, ...)"""


class StorageError(DoseKeeperError):
    """The durable store could not complete a read or write"""
