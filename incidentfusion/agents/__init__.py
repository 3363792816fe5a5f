"""IncidentFusion agents package."""

from incidentfusion.agents.base import AgentStatus, BaseAgent
from incidentfusion.agents.image_agent import ImageAnalyzer, ImageTriageAgent
from incidentfusion.agents.sentiment_agent import SentimentAnalyzer, SentimentSweepAgent
from incidentfusion.agents.synthesis_agent import EventSynthesizer, SynthesisAgent

__all__ = [
    "AgentStatus",
    "BaseAgent",
    "EventSynthesizer",
    "ImageAnalyzer",
    "ImageTriageAgent",
    "SentimentAnalyzer",
    "SentimentSweepAgent",
    "SynthesisAgent",
]
