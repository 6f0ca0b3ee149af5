"""
Domain errors raised by the service layer.

Each error carries the HTTP status the dispatch layer reports it with, so
services stay free of transport concerns while still mapping one-to-one onto
caller-visible failures.
"""

from __future__ import annotations

from typing import Optional


class PlanningError(Exception):
    """Base class for every failure a caller can see."""

    kind = "error"
    status_code = 400

    def __init__(self, detail: str, items: Optional[list[str]] = None):
        self.detail = detail
        self.items = items
        super().__init__(detail)

    def to_dict(self) -> dict:
        body: dict = {"kind": self.kind, "detail": self.detail}
        if self.items is not None:
            body["items"] = self.items
        return body


class NotFound(PlanningError):
    kind = "not_found"
    status_code = 404


class NoActiveProject(NotFound):
    def __init__(self, branch: Optional[str] = None):
        where = f" on branch '{branch}'" if branch else ""
        super().__init__(
            f"No active project found{where}. Initialize a project context first."
        )


class InvalidArgument(PlanningError):
    kind = "invalid_argument"
    status_code = 422


class CycleDetected(PlanningError):
    kind = "cycle_detected"
    status_code = 409


class Blocked(PlanningError):
    """Completion attempted while dependencies or blockers are unsatisfied."""

    kind = "blocked"
    status_code = 409

    def __init__(self, items: list[str]):
        super().__init__(
            "Cannot complete task: blocked by " + ", ".join(items),
            items=items,
        )


class AlreadyExists(PlanningError):
    kind = "already_exists"
    status_code = 409
