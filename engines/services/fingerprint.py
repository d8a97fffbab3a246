"""
Analysis Fingerprint

SHA-256 over the canonical JSON of an analysis. Two runs over the same
inputs must yield the same fingerprint, which is what makes a stored
report reproducible.
"""

import hashlib
import json
from typing import Iterable

from engines.schemas.analysis import UserAnalysis


def canonical_json(results: Iterable[UserAnalysis]) -> str:
    """Sorted-key JSON; decimals and dates are rendered as strings."""
    payload = [result.model_dump(mode="json") for result in results]
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


def analysis_fingerprint(results: Iterable[UserAnalysis]) -> str:
    return hashlib.sha256(canonical_json(results).encode()).hexdigest()
