"""LLM factory for the exhibit text generator.

Provides centralized ChatVertexAI creation so that model name, project and
location come from a single place (settings).
"""

from langchain_google_vertexai import ChatVertexAI

from src.config import settings


def get_llm(
    temperature: float | None = None,
    model: str | None = None,
) -> ChatVertexAI:
    """Get LLM instance.

    Args:
        temperature: Override default temperature. If None, uses settings.llm_temperature.
        model: Override model name. If None, uses settings.llm_model.

    Returns:
        ChatVertexAI instance configured for JSON-producing generation.

    Examples:
        >>> llm = get_llm()
        >>> calm_llm = get_llm(temperature=0.2)
    """
    temp = temperature if temperature is not None else settings.llm_temperature

    return ChatVertexAI(
        model_name=model or settings.llm_model,
        project=settings.google_project_id,
        location=settings.google_location,
        temperature=temp,
        response_mime_type="application/json",
    )
