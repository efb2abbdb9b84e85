"""Exceptions raised while extracting data from pw.x XML output.

Routine Listings
----------------
PWXmlError : class
    Base class, carries the schema location of the failure
NodeNotFoundError : class
    A mandatory element or attribute is absent
MalformedDataError : class
    Text or counts do not match what the schema promises
InvariantViolationError : class
    A cross-quantity consistency check failed

Notes
-----
All classes derive from ``ValueError`` so callers that already guard the
other readers of the package with ``except ValueError`` keep working.
"""

from beartype.typing import Optional


class PWXmlError(ValueError):
    """Base class for every extraction failure.

    Parameters
    ----------
    message : str
        Human readable description of the failure.
    location : str, optional
        Slash-separated schema path of the offending node, e.g.
        ``output/atomic_structure/cell/a2``.
    """

    def __init__(self, message: str, location: Optional[str] = None) -> None:
        self.message = message
        self.location = location
        if location is not None:
            message = f"{message} (at {location})"
        super().__init__(message)


class NodeNotFoundError(PWXmlError):
    """A mandatory element or attribute is missing from the document."""


class MalformedDataError(PWXmlError):
    """Text content or a declared count does not match the expected data."""


class InvariantViolationError(PWXmlError):
    """Two quantities that must agree with each other do not."""


__all__ = [
    "PWXmlError",
    "NodeNotFoundError",
    "MalformedDataError",
    "InvariantViolationError",
]
