"""Exam payload normalization.

Two steps:
1. normalize_payload() folds the legacy field names and nested result
   containers into one ExamPayload at the boundary.
2. ExamNormalizer.normalize_entries() turns the heterogeneous skill
   entries into acquired leaf skills. Anything unresolvable, failed or
   non-leaf is dropped and logged; nothing here is fatal.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Any

import structlog

from skills_engine.config.app_config import ExamConfig
from skills_engine.core.errors import InvalidPayloadError, NotFoundError, SkillsEngineError
from skills_engine.core.models import ExamType, VerifiedSkill
from skills_engine.core.skill_graph import SkillGraph
from skills_engine.utils.validators import clean_optional_text, is_valid_uuid

logger = structlog.get_logger(__name__)

# Checked in order; the first list found wins
ENTRY_FIELDS = ("skills", "verified_skills", "verifiedSkills")
NESTED_CONTAINERS = ("results", "exam_results", "examResults")

POST_COURSE_ALIASES = {"post-course", "postcourse", "post_course"}


@dataclass
class ExamPayload:
    """Canonical exam record."""

    user_id: str
    exam_type: ExamType
    entries: list[Any] = field(default_factory=list)
    exam_status: str | None = None
    course_name: str | None = None
    final_grade: float | None = None


@dataclass
class AcquiredSkill:
    """A leaf skill the user demonstrated in this exam."""

    skill_id: str
    skill_name: str
    score: float | None = None

    def to_verified(self) -> VerifiedSkill:
        # score is informational and never persisted
        return VerifiedSkill(skill_id=self.skill_id, skill_name=self.skill_name, verified=True)


def parse_exam_type(value: Any) -> ExamType:
    """Map the accepted spellings onto ExamType.

    Raises:
        InvalidPayloadError: For anything other than baseline / post-course
    """
    normalized = str(value or "").strip().lower()
    if normalized == "baseline":
        return ExamType.BASELINE
    if normalized in POST_COURSE_ALIASES:
        return ExamType.POST_COURSE
    raise InvalidPayloadError(
        f'Invalid exam_type: "{value}". Must be "baseline" or "post-course" (or "postcourse")'
    )


def normalize_payload(raw: Any) -> ExamPayload:
    """Build an ExamPayload from a raw exam record.

    Nested containers (results / exam_results / examResults) are merged
    over the top-level fields.

    Raises:
        InvalidPayloadError: Missing or invalid user_id, unknown exam_type,
            or a payload that is not a mapping
    """
    if not isinstance(raw, dict):
        raise InvalidPayloadError("Invalid payload structure")

    merged = dict(raw)
    for container in NESTED_CONTAINERS:
        nested = raw.get(container)
        if isinstance(nested, dict):
            merged.update(nested)
            break

    user_id = merged.get("user_id")
    if not user_id:
        raise InvalidPayloadError("user_id is required")
    if not is_valid_uuid(user_id):
        raise InvalidPayloadError(f"Invalid user_id format: {user_id}")

    exam_type = parse_exam_type(merged.get("exam_type"))

    entries: list[Any] = []
    for name in ENTRY_FIELDS:
        if isinstance(merged.get(name), list):
            entries = merged[name]
            break
    else:
        logger.warning("exam.no_skills_field", user_id=user_id, keys=sorted(merged))

    status = clean_optional_text(merged.get("exam_status"))

    return ExamPayload(
        user_id=user_id.strip(),
        exam_type=exam_type,
        entries=entries,
        exam_status=status.lower() if isinstance(status, str) else None,
        course_name=clean_optional_text(merged.get("course_name")),
        final_grade=_parse_grade(merged.get("final_grade")),
    )


def _parse_grade(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("exam.invalid_final_grade", value=value)
        return None


def _first_text(entry: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    """First non-blank string among keys; other types are ignored."""
    for key in keys:
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def entry_status(entry: dict[str, Any]) -> str:
    """Lowercased status, falling back to the legacy passed flag."""
    status = entry.get("status")
    if isinstance(status, str) and status.strip():
        return status.strip().lower()
    if "passed" in entry:
        return "pass" if entry["passed"] is True else "fail"
    return "fail"


class ExamNormalizer:
    """Reduces exam entries to acquired leaf skills."""

    def __init__(self, skills: SkillGraph, config: ExamConfig):
        self.skills = skills
        self.config = config

    def normalize_entries(self, payload: ExamPayload) -> list[AcquiredSkill]:
        """Acquired leaf skills, unique by skill_id, in payload order."""
        success = self.config.statuses_for(payload.exam_type.value)
        acquired: dict[str, AcquiredSkill] = {}

        for index, entry in enumerate(payload.entries):
            try:
                skill = self._normalize_entry(entry, success, payload.user_id, index)
            except Exception as e:
                logger.exception(
                    "exam.entry_failed", user_id=payload.user_id, index=index, error=str(e)
                )
                continue
            if skill is not None:
                acquired.setdefault(skill.skill_id, skill)

        logger.info(
            "exam.entries_normalized",
            user_id=payload.user_id,
            exam_type=payload.exam_type.value,
            received=len(payload.entries),
            acquired=len(acquired),
        )
        return list(acquired.values())

    def _normalize_entry(
        self,
        entry: Any,
        success: frozenset[str],
        user_id: str,
        index: int,
    ) -> AcquiredSkill | None:
        if not isinstance(entry, dict):
            self._discard(user_id, index, "not_a_mapping")
            return None

        skill_id = entry.get("skill_id") or entry.get("skillId")
        skill_name = _first_text(entry, ("skill_name", "skillName", "name"))

        if not skill_id:
            try:
                resolved = self.skills.find_by_name(skill_name) if skill_name else None
            except (SkillsEngineError, sqlite3.Error) as e:
                self._discard(user_id, index, "lookup_failed", skill_name=skill_name, error=str(e))
                return None
            if resolved is None:
                self._discard(user_id, index, "unresolved_skill", skill_name=skill_name)
                return None
            skill_id = resolved.skill_id
            skill_name = resolved.skill_name

        skill_id = str(skill_id)
        status = entry_status(entry)
        if status not in success:
            self._discard(user_id, index, "not_acquired", skill_id=skill_id, status=status)
            return None

        try:
            if not self.skills.is_leaf(skill_id):
                self._discard(user_id, index, "not_leaf", skill_id=skill_id)
                return None
        except NotFoundError:
            self._discard(user_id, index, "unknown_skill", skill_id=skill_id)
            return None
        except (SkillsEngineError, sqlite3.Error) as e:
            self._discard(user_id, index, "lookup_failed", skill_id=skill_id, error=str(e))
            return None

        if not skill_name:
            known = self.skills.find_by_id(skill_id)
            skill_name = known.skill_name if known else ""

        score = entry.get("score")
        return AcquiredSkill(
            skill_id=skill_id,
            skill_name=str(skill_name),
            score=score if isinstance(score, (int, float)) and not isinstance(score, bool) else None,
        )

    def _discard(self, user_id: str, index: int, reason: str, **fields: Any) -> None:
        logger.info("exam.entry_discarded", user_id=user_id, index=index, reason=reason, **fields)
