"""HTTP client for the coordinator gateway.

Every outbound message is an envelope:

    {"requester_service": "skills-engine",
     "payload": {"action": ..., "user_id": ..., ...},
     "response": {}}

The coordinator routes it to the directory or learner service.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from skills_engine.config.app_config import CoordinatorConfig
from skills_engine.core.errors import CoordinatorError

logger = structlog.get_logger(__name__)

PROFILE_ACTION = "Update competency profile in Directory MS"
GAP_ANALYSIS_ACTION = "Send gap analysis results"


class CoordinatorClient:
    """Synchronous coordinator client implementing ProfileSink."""

    def __init__(self, config: CoordinatorConfig, http_client: httpx.Client | None = None):
        self.config = config
        base_url = config.get_base_url()
        if http_client is None and not base_url:
            raise CoordinatorError("Coordinator base URL is not configured")
        self._client = http_client or httpx.Client(
            base_url=base_url,
            timeout=config.timeout_seconds,
        )

    def close(self) -> None:
        self._client.close()

    def build_envelope(self, action: str, user_id: str, **fields: Any) -> dict[str, Any]:
        return {
            "requester_service": self.config.service_name,
            "payload": {"action": action, "user_id": user_id, **fields},
            "response": {},
        }

    def post(self, envelope: dict[str, Any], endpoint: str | None = None) -> dict[str, Any]:
        """POST an envelope and return the decoded response body.

        Raises:
            CoordinatorError: On transport errors or non-2xx responses
        """
        path = endpoint or self.config.default_endpoint
        action = envelope.get("payload", {}).get("action")

        try:
            response = self._client.post(path, json=envelope)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "coordinator.http_error",
                endpoint=path,
                action=action,
                status_code=e.response.status_code,
            )
            raise CoordinatorError(
                f"Coordinator returned {e.response.status_code} for {path}"
            ) from e
        except httpx.HTTPError as e:
            logger.warning("coordinator.transport_error", endpoint=path, action=action, error=str(e))
            raise CoordinatorError(f"Coordinator request failed: {e}") from e

        logger.debug("coordinator.posted", endpoint=path, action=action)
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text}

    def send_updated_profile(self, user_id: str, profile: dict[str, Any]) -> dict[str, Any]:
        fields = {k: v for k, v in profile.items() if k != "userId"}
        envelope = self.build_envelope(PROFILE_ACTION, user_id, **fields)
        return self.post(envelope, endpoint=self.config.profile_endpoint)

    def send_gap_analysis(
        self,
        user_id: str,
        gaps: dict[str, list[dict[str, str]]],
        analysis_type: str,
        exam_status: str,
    ) -> dict[str, Any]:
        envelope = self.build_envelope(
            GAP_ANALYSIS_ACTION,
            user_id,
            missing_mgs=gaps,
            analysis_type=analysis_type,
            exam_status=exam_status,
        )
        return self.post(envelope)


def create_coordinator_client(config: CoordinatorConfig) -> CoordinatorClient | None:
    """Client built from config, or None when disabled or unconfigured."""
    if not config.enabled:
        logger.info("coordinator.disabled")
        return None
    if not config.get_base_url():
        logger.info("coordinator.not_configured", base_url_env=config.base_url_env)
        return None
    return CoordinatorClient(config)
