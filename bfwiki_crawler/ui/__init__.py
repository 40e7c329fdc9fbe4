"""User interaction helpers."""

from .progress import CrawlDashboard, RateColumn
from .wizard import CrawlWizard

__all__ = ["CrawlDashboard", "CrawlWizard", "RateColumn"]
