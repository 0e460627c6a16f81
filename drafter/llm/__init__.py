"""Analyzer layer.

Public API:
    Analyzer (protocol), AnalysisFailed
    OpenAIAnalyzer, AnalyzerConfig
"""

from drafter.llm.openai_analyzer import AnalyzerConfig, OpenAIAnalyzer
from drafter.llm.provider import AnalysisFailed, Analyzer

__all__ = [
    "Analyzer",
    "AnalysisFailed",
    "AnalyzerConfig",
    "OpenAIAnalyzer",
]
