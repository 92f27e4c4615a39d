"""Origin reputation engine for OriginGuard."""

from .controller import PhishingController
from .detector import DetectionEngine
from .fetcher import ListSourceFetcher
from .models import DetectionResult, FeedSource, ListSource, MergedRuleset
from .overrides import OverrideStore
from .reconciler import reconcile
from .scheduler import RefreshScheduler

__all__ = [
    "PhishingController",
    "DetectionEngine",
    "ListSourceFetcher",
    "DetectionResult",
    "FeedSource",
    "ListSource",
    "MergedRuleset",
    "OverrideStore",
    "reconcile",
    "RefreshScheduler",
]
