"""Exceptions raised by the highlight mapping pipeline."""


class HighlightError(Exception):
    """Base class for highlight pipeline failures."""


class CollaboratorUnavailable(HighlightError):
    """The search service or the document repository failed outright."""

    def __init__(self, collaborator: str, detail: str):
        self.collaborator = collaborator
        self.detail = detail
        super().__init__(f"{collaborator} unavailable: {detail}")


class ContractViolation(HighlightError):
    """An internal invariant of the mapping was broken."""
