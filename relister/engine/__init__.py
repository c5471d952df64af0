"""Engine components orchestrating dedup → gates → persist → publish."""

from .contracts import Candidate, ItemDetail, SearchCriteria
from .dedup import DedupFilter, admit, unique_by_id
from .pipeline import ItemPipeline, Outcome, ProcessingResult
from .rate_limiter import RateLimiter, Throttle
from .records import RecordKeys, RecordWriter, is_terminal

__all__ = [
    "Candidate",
    "DedupFilter",
    "ItemDetail",
    "ItemPipeline",
    "Outcome",
    "ProcessingResult",
    "RateLimiter",
    "RecordKeys",
    "RecordWriter",
    "SearchCriteria",
    "Throttle",
    "admit",
    "is_terminal",
    "unique_by_id",
]
