"""Remote analysis service client."""

from .client import AnalysisClient, parse_analysis_response

__all__ = ["AnalysisClient", "parse_analysis_response"]
