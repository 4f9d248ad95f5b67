"""Agents package - hosted model gateways (Claude, Gemini) and reply parsing."""

from app.agents.base import GatewayError, ModelGateway, ModelResponse, SearchTools
from app.agents.claude_gateway import ClaudeGateway
from app.agents.gemini_gateway import GeminiGateway
from app.agents.response_parser import default_payload, parse_radar_response
from app.config import get_settings


# Factory function to get the appropriate gateway
def get_model_gateway() -> ModelGateway:
    """Get model gateway based on configured LLM provider."""
    settings = get_settings()

    if settings.llm_provider == "gemini":
        return GeminiGateway()
    # Default to Claude
    return ClaudeGateway()


__all__ = [
    "ModelGateway",
    "ModelResponse",
    "SearchTools",
    "GatewayError",
    "ClaudeGateway",
    "GeminiGateway",
    "get_model_gateway",
    "parse_radar_response",
    "default_payload",
]
