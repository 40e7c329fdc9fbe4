"""Engine components: fetch → gate → parse → aggregate."""

from .aggregator import AtomicCounter, CrawlProgress, TargetSet
from .events import NullProgressSink, ProgressSink, RecordingProgressSink
from .fetcher import Fetcher, Page
from .gate import ConcurrencyGate
from .parser import WikiParser

__all__ = [
    "AtomicCounter",
    "ConcurrencyGate",
    "CrawlProgress",
    "Fetcher",
    "NullProgressSink",
    "Page",
    "ProgressSink",
    "RecordingProgressSink",
    "TargetSet",
    "WikiParser",
]
