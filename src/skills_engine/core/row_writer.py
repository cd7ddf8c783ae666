"""Compare-and-swap writes for usercompetency rows."""

from __future__ import annotations

from typing import Any, Callable

import structlog

from skills_engine.core.errors import ConcurrentUpdateError, DuplicateRecordError, NotFoundError
from skills_engine.core.interfaces import UserCompetencyRepository
from skills_engine.core.models import UserCompetency

logger = structlog.get_logger(__name__)

# Receives the current row, returns the fields to write
FieldBuilder = Callable[[UserCompetency], dict[str, Any]]


class RowWriter:
    """Read-modify-write with retry on version conflicts."""

    def __init__(self, repository: UserCompetencyRepository, max_retries: int = 3):
        self.repository = repository
        self.max_retries = max_retries

    def update(self, row: UserCompetency, build: FieldBuilder) -> UserCompetency:
        """Write build(row) guarded by row.version.

        On conflict the row is re-read and build() runs again on the fresh
        state, up to max_retries extra attempts.

        Raises:
            ConcurrentUpdateError: When every attempt conflicted
            NotFoundError: If the row disappeared
        """
        current = row
        for attempt in range(self.max_retries + 1):
            try:
                return self.repository.update(
                    current.user_id,
                    current.competency_id,
                    expected_version=current.version,
                    **build(current),
                )
            except ConcurrentUpdateError:
                logger.info(
                    "usercompetency.version_conflict",
                    user_id=current.user_id,
                    competency_id=current.competency_id,
                    attempt=attempt + 1,
                )
                fresh = self.repository.find_by_user_and_competency(
                    current.user_id, current.competency_id
                )
                if fresh is None:
                    raise NotFoundError(
                        "UserCompetency", f"{current.user_id}/{current.competency_id}"
                    )
                current = fresh

        raise ConcurrentUpdateError(current.user_id, current.competency_id, current.version)

    def create_or_update(
        self, user_id: str, competency_id: str, build: FieldBuilder
    ) -> UserCompetency:
        """Create the row with build(empty row); a creation race falls back to update."""
        empty = UserCompetency(user_id=user_id, competency_id=competency_id)
        try:
            return self.repository.create(user_id, competency_id, **build(empty))
        except DuplicateRecordError:
            logger.info(
                "usercompetency.create_race", user_id=user_id, competency_id=competency_id
            )
            existing = self.repository.find_by_user_and_competency(user_id, competency_id)
            if existing is None:
                raise
            return self.update(existing, build)
