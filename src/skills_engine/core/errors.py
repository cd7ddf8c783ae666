"""Exception hierarchy for the skills engine."""

from __future__ import annotations


class SkillsEngineError(Exception):
    """Base error for the skills engine."""

    pass


class NotFoundError(SkillsEngineError):
    """Raised when a skill or competency id does not exist."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class InvalidPayloadError(SkillsEngineError):
    """Raised when an exam payload cannot be processed at all."""

    pass


class DuplicateRecordError(SkillsEngineError):
    """Raised when creating a row that already exists."""

    pass


class ConcurrentUpdateError(SkillsEngineError):
    """Raised when a row changed between read and compare-and-swap write."""

    def __init__(self, user_id: str, competency_id: str, expected_version: int):
        self.user_id = user_id
        self.competency_id = competency_id
        self.expected_version = expected_version
        super().__init__(
            f"UserCompetency ({user_id}, {competency_id}) changed since "
            f"version {expected_version}"
        )


class CoordinatorError(SkillsEngineError):
    """Raised when an outbound coordinator call fails."""

    pass
