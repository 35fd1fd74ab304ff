"""
Error types raised by the MinHash index
"""


class MinhashError(Exception):
    """Base class for every failure surfaced by the index"""


class NotFoundError(MinhashError):
    """The anchor document is absent from the upstream catalog"""


class ConfigurationError(MinhashError):
    """Index options that cannot produce a valid banding"""


class StoreError(MinhashError):
    """Failure reported by the persistence layer"""


class ComputationError(MinhashError):
    """Degenerate numeric case; reserved, not raised at present"""
