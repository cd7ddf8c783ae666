"""Best-effort delivery of run outputs to downstream services.

Delivery never fails a run; every outcome lands in a DeliveryReport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from skills_engine.core.gap_analysis import GapAnalysisResult
from skills_engine.core.interfaces import ProfileSink

logger = structlog.get_logger(__name__)

GAP_CHANNEL = "gap_analysis"
PROFILE_CHANNEL = "profile"


@dataclass
class DeliveryReport:
    """Per-channel delivery outcome."""

    delivered: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"delivered": self.delivered, "skipped": self.skipped, "failed": self.failed}


class Outbox:
    """Sends gap payloads and profile snapshots through a ProfileSink."""

    def __init__(self, sink: ProfileSink | None = None):
        self.sink = sink

    def deliver_gap_analysis(
        self, user_id: str, result: GapAnalysisResult | None, report: DeliveryReport
    ) -> None:
        if result is None or result.skipped:
            report.skipped[GAP_CHANNEL] = "analysis_skipped"
            return
        if not result.should_send:
            report.skipped[GAP_CHANNEL] = "send_policy"
            return

        self._send(
            GAP_CHANNEL,
            report,
            user_id,
            lambda: self.sink.send_gap_analysis(
                user_id, result.gaps, result.analysis_type.value, result.exam_status
            ),
        )

    def deliver_profile(
        self, user_id: str, snapshot: dict[str, Any] | None, report: DeliveryReport
    ) -> None:
        if snapshot is None:
            report.skipped[PROFILE_CHANNEL] = "no_snapshot"
            return

        self._send(
            PROFILE_CHANNEL,
            report,
            user_id,
            lambda: self.sink.send_updated_profile(user_id, snapshot),
        )

    def _send(self, channel: str, report: DeliveryReport, user_id: str, call) -> None:
        if self.sink is None:
            report.skipped[channel] = "no_sink"
            return

        try:
            call()
        except Exception as e:
            logger.warning("outbox.delivery_failed", channel=channel, user_id=user_id, error=str(e))
            report.failed[channel] = str(e)
            return

        logger.info("outbox.delivered", channel=channel, user_id=user_id)
        report.delivered.append(channel)
