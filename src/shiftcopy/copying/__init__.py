"""Conflict analysis and batch application of copied patterns."""

from shiftcopy.copying.analyzer import ConflictAnalyzer, analyse
from shiftcopy.copying.orchestrator import CopyConfig, CopyOrchestrator
from shiftcopy.copying.session import CopySession, SessionStep, SourceType

__all__ = [
    # Analysis
    "ConflictAnalyzer",
    "analyse",
    # Orchestration
    "CopyConfig",
    "CopyOrchestrator",
    # Wizard
    "CopySession",
    "SessionStep",
    "SourceType",
]
