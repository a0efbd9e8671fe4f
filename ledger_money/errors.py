from typing import Optional


class MoneyError(Exception):
    """Base class for every error raised by ledger_money."""


class InvalidArgument(MoneyError, TypeError, ValueError):
    """
    An argument was rejected before any work was done.
    e.g. a float amount passed where a decimal string is required.
    """


class AssetNotFound(MoneyError, LookupError):
    def __init__(self, identifier: str, message: Optional[str] = None):
        self.identifier = identifier
        super().__init__(message or f"Asset {identifier!r} not found")


class IncompatibleAsset(MoneyError, ValueError):
    def __init__(self, left: str, right: str):
        self.left = left
        self.right = right
        super().__init__(f"Cannot operate on different assets: {left} and {right}")


class AssetSourceError(MoneyError):
    """The asset source failed for a reason other than an unknown identifier."""
