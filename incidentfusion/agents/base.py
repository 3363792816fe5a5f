"""BaseAgent ABC and AgentStatus constants for IncidentFusion.

All pipeline agents inherit from BaseAgent and implement the run() method.
The base class enforces the standard interface: run, validate_output, reset.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from incidentfusion.models.pipeline import PipelineContext

logger = logging.getLogger(__name__)


class AgentStatus:
    """Status codes used in AgentResult.status."""

    OK = "OK"
    PARTIAL = "PARTIAL"
    CRITICAL = "CRITICAL"
    FAILED = "FAILED"


def status_from_counts(succeeded: int, failed: int) -> str:
    """Derive an agent status from per-item success and failure counts.

    Args:
        succeeded: Items processed successfully.
        failed: Items that failed.

    Returns:
        OK when nothing failed, CRITICAL when everything attempted failed,
        PARTIAL otherwise.
    """
    if failed == 0:
        return AgentStatus.OK
    if succeeded == 0:
        return AgentStatus.CRITICAL
    return AgentStatus.PARTIAL


class BaseAgent(ABC):
    """Abstract base class for all IncidentFusion pipeline agents.

    Every agent must implement run(). Pipeline data flows through
    PipelineContext; collaborators (LLM client, geocoder, data fetcher) are
    injected at construction.
    """

    name: str = "BaseAgent"
    version: str = "1.0.0"

    @abstractmethod
    def run(self, context: "PipelineContext") -> Any:
        """Execute the agent and return a typed result.

        The result should be stored on the context object by the caller
        (pipeline orchestrator) after this method returns.

        Args:
            context: Shared pipeline context with configuration and inputs.

        Returns:
            A typed agent result dataclass (subclass-specific).
        """

    def validate_output(self, result: Any) -> bool:
        """Post-run validation of structured output.

        Args:
            result: The typed result produced by run().

        Returns:
            True if output is valid, False if validation failed.
        """
        return result is not None

    def reset(self) -> None:
        """Clear internal state for re-use."""

    def _run_timed(self, context: "PipelineContext") -> Any:
        """Execute run() and log elapsed time.

        Args:
            context: Shared pipeline context.

        Returns:
            Result from run(), with elapsed_seconds filled in when present.
        """
        start = time.monotonic()
        try:
            result = self.run(context)
        except Exception as exc:
            elapsed = time.monotonic() - start
            logger.error(
                "Agent %s failed after %.2fs: %s",
                self.name,
                elapsed,
                exc,
                exc_info=True,
            )
            raise
        elapsed = time.monotonic() - start
        if hasattr(result, "elapsed_seconds"):
            result.elapsed_seconds = elapsed
        logger.info(
            "Agent %s completed in %.2fs (status=%s)",
            self.name,
            elapsed,
            getattr(result, "status", "?"),
        )
        return result
