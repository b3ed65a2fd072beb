# Application Progress Package
from .calculator import ProgressCalculator
from .service import ProgressService

__all__ = ["ProgressCalculator", "ProgressService"]
