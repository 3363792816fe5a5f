"""ImageAnalyzer — Vision triage of citizen image reports.

One vision call per image, then moderation and event derivation from
incidentfusion.analysis.image_triage.
"""

from __future__ import annotations

import logging
from typing import Any

from config.defaults import LLM_DEFAULT_MAX_TOKENS, LLM_TEMPERATURE
from incidentfusion.agents.base import AgentStatus, BaseAgent
from incidentfusion.analysis.image_triage import (
    build_image_report_event,
    check_image_safety,
    parse_image_analysis,
)
from incidentfusion.clients.llm_client import JSON_ONLY_SUFFIX, LLMClient
from incidentfusion.models.image import (
    IMAGE_CATEGORIES,
    SAFETY_LEVELS,
    TIMES_OF_DAY,
    ImageAnalysisResult,
    ImageMetadata,
)
from incidentfusion.models.pipeline import ImageTriageResult

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You analyze images submitted by citizens reporting city events and return "
    "structured, actionable intelligence for city officials."
)

_ANALYSIS_PROMPT = (
    "Analyze this image submitted by a citizen reporting a city event. "
    "Respond with a JSON object of the form:\n"
    "{\n"
    '  "description": "Clear, detailed description of what you see (max 200 chars)",\n'
    f'  "category": "{"|".join(IMAGE_CATEGORIES)}",\n'
    '  "severityScore": 1-5,\n'
    '  "extractedText": ["visible text", "signs", "license plates"],\n'
    '  "confidence": 0.0-1.0,\n'
    '  "detectedObjects": ["car", "person", "building", "water"],\n'
    f'  "safetyLevel": "{"|".join(SAFETY_LEVELS)}",\n'
    '  "suggestedActions": ["specific action 1", "specific action 2"],\n'
    '  "locationClues": ["street names", "landmarks", "business names"],\n'
    f'  "timeOfDayEstimate": "{"|".join(TIMES_OF_DAY)}",\n'
    '  "weatherConditions": "clear|rainy|foggy|snowy|etc"\n'
    "}\n\n"
    "Severity: 1 minor, 2 routine maintenance, 3 schedule response, "
    "4 urgent response, 5 critical emergency.\n"
    "Safety: safe (no danger), caution (potential hazard), danger (active threat), "
    "emergency (immediate response needed).\n"
    "Suggested actions should name the responsible department where possible."
)


class ImageAnalyzer:
    """Analyze, moderate and convert a citizen image report.

    Args:
        llm_client: Vision-capable collaborator.
        max_tokens: Token budget for the vision call.
        temperature: Sampling temperature.
    """

    name = "ImageAnalyzer"

    def __init__(
        self,
        llm_client: LLMClient,
        max_tokens: int = LLM_DEFAULT_MAX_TOKENS,
        temperature: float = LLM_TEMPERATURE,
    ) -> None:
        self.llm_client = llm_client
        self.max_tokens = max_tokens
        self.temperature = temperature

    def analyze(self, image_bytes: bytes, metadata: ImageMetadata) -> ImageAnalysisResult:
        """Run the vision call and parse its response.

        Args:
            image_bytes: Raw image content.
            metadata: Upload metadata (mime type is forwarded to the collaborator).

        Returns:
            ImageAnalysisResult (the manual-review fallback when unparseable).

        Raises:
            CollaboratorUnavailable: If the vision call fails.
        """
        raw = self.llm_client.call_with_image(
            _SYSTEM_PROMPT + JSON_ONLY_SUFFIX,
            _ANALYSIS_PROMPT,
            image_bytes,
            mime_type=metadata.mime_type,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return parse_image_analysis(raw)

    def triage(self, image_bytes: bytes, metadata: ImageMetadata) -> ImageTriageResult:
        """Analyze, moderate and derive the report event for one image.

        Args:
            image_bytes: Raw image content.
            metadata: Upload metadata.

        Returns:
            ImageTriageResult; ``event`` is None when moderation rejected the image.
        """
        result = ImageTriageResult()
        analysis = self.analyze(image_bytes, metadata)
        moderation = check_image_safety(analysis)
        result.analysis = analysis
        result.moderation = moderation
        result.event = build_image_report_event(analysis, moderation, metadata)

        if moderation.action == "reject":
            result.warnings.append(f"Image rejected by moderation: {', '.join(moderation.flags)}")
            result.status = AgentStatus.PARTIAL

        logger.info(
            "Image %s: category=%s severity=%d action=%s",
            metadata.image_url, analysis.category, analysis.severity_score, moderation.action,
        )
        return result


class ImageTriageAgent(BaseAgent):
    """Pipeline phase wrapper triaging one uploaded image.

    Args:
        analyzer: Image analyzer bound to the vision collaborator.
        image_bytes: Raw image content.
        metadata: Upload metadata.
    """

    name = "ImageTriageAgent"
    version = "1.0.0"

    def __init__(self, analyzer: ImageAnalyzer, image_bytes: bytes, metadata: ImageMetadata) -> None:
        self.analyzer = analyzer
        self.image_bytes = image_bytes
        self.metadata = metadata

    def run(self, context: Any) -> ImageTriageResult:
        return self.analyzer.triage(self.image_bytes, self.metadata)
