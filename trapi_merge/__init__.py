"""Merge TRAPI messages from several knowledge providers into one."""
from .merge import (
    MERGE_DESCRIPTORS,
    Merger,
    canonicalize_message,
    merge,
    merge_messages,
    merge_responses,
)
from .results import ResultReconciler, analyses_match, result_identity
from .scoring import (
    Evidence,
    build_evidence_map,
    compute_composite_score,
    normalize_score,
    score_evidence,
    score_message,
)
from .validation import ValidationError, ensure_valid, validate_message
