from .discovery import Discovery, discover_candidates
from .engine import MergeEngine, run_merge
from .fetch import fetch_candidates
from .fold import Fold, HyalineFold, PairwiseFold

__all__ = [
    "Discovery",
    "Fold",
    "HyalineFold",
    "MergeEngine",
    "PairwiseFold",
    "discover_candidates",
    "fetch_candidates",
    "run_merge",
]
