"""
Orchestration package for coordinating export pipeline phases.

This package provides the orchestration layer that sequences all export
phases: Discover → Fetch → Convert → Write → Report.
"""

from .export_orchestrator import ExportOrchestrator
from .export_report import ExportReport

__all__ = [
    'ExportOrchestrator',
    'ExportReport'
]
