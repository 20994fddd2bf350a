"""Source analyzers producing analysis snapshots."""

from .base import AnalysisSnapshot, SourceAnalyzer
from .java import JavaSourceAnalyzer

__all__ = ["AnalysisSnapshot", "SourceAnalyzer", "JavaSourceAnalyzer"]
