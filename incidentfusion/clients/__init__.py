"""IncidentFusion external collaborator clients."""

from incidentfusion.clients.geocoding_client import GeocodingClient
from incidentfusion.clients.llm_client import LLMClient, extract_json_object

__all__ = ["GeocodingClient", "LLMClient", "extract_json_object"]
