# Agents Package Init
from .quiz_generation.pipeline import QuizGenerationPipeline
from .performance_agent import PerformanceAgent

__all__ = [
    "QuizGenerationPipeline",
    "PerformanceAgent",
]
