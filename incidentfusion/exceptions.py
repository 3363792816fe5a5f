"""Exception taxonomy for IncidentFusion.

Structural failures raise one of these; field-level problems inside a parsed
collaborator payload never do (they fall back to defaults).
"""

from __future__ import annotations

from typing import Optional


class IncidentFusionError(Exception):
    """Base class for all IncidentFusion errors."""


class NoLocationData(IncidentFusionError):
    """Raised when location inference is given no post that carries a location."""


class SynthesisParseError(IncidentFusionError):
    """Raised when a narrative collaborator response contains no parseable JSON object.

    Args:
        message: Human-readable description of the failure.
        raw_response: The raw collaborator text, kept for diagnosis.
    """

    def __init__(self, message: str, raw_response: Optional[str] = None) -> None:
        super().__init__(message)
        self.raw_response = raw_response


class CollaboratorUnavailable(IncidentFusionError):
    """Raised when the narrative/sentiment collaborator cannot be reached.

    Never retried inside the core; the orchestrating layer decides on retry policy.
    """
