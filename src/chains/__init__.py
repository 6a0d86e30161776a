"""LangChain chains for exhibit signboard generation."""

from src.chains.exhibit_generator import (
    ExhibitData,
    ExhibitGeneratorChain,
    ExhibitStats,
    GenerationError,
    UserInput,
)

__all__ = [
    "ExhibitData",
    "ExhibitGeneratorChain",
    "ExhibitStats",
    "GenerationError",
    "UserInput",
]
