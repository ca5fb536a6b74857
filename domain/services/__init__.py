"""
Domain services containing pure business logic.
"""

from domain.services.verdict_calculator import Verdict, VerdictCalculator

__all__ = ["Verdict", "VerdictCalculator"]
