"""Exceptions raised while building solutions."""


class RetailerError(Exception):
    """Base class for errors raised by the resolution engine."""


class InvalidVendorError(RetailerError, ValueError):
    """The configured vendor cannot prefix a package name."""


class InvalidPackageError(RetailerError, ValueError):
    """A canonical package name cannot be computed for a solution."""


class InvalidReferenceError(RetailerError, ValueError):
    """A required/excluded solution entry is missing its identity."""


class CompositionError(RetailerError, ValueError):
    """A composition change cannot be applied."""
