"""Composite scoring of numeric edge evidence.

Providers that report statistical evidence (a log-odds ratio and the sample
size behind it) for the same pair of entities are blended into one score:
the sample-size weighted mean log-odds ratio, squashed with
``atan(score) * 2 / pi``.
"""
from collections import defaultdict, namedtuple
import logging
import math
from typing import Dict, List, Optional, Tuple

import numpy as np

from .config import settings
from .models import Analysis, Edge, EdgeBinding, Message, ResourceRoleEnum, Result

LOGGER = logging.getLogger(__name__)

Evidence = namedtuple(
    "Evidence",
    ["resource_id", "knowledge_graph_edge_id", "log_odds_ratio", "total_sample_size"],
)

EvidenceMap = Dict[Tuple[str, str], List[Evidence]]


def _as_float(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(value):
        return None
    return value


def _as_int(value) -> Optional[int]:
    value = _as_float(value)
    if value is None or math.isinf(value):
        return None
    return int(value)


def edge_resource_id(edge: Edge) -> Optional[str]:
    """Primary knowledge source of an edge, falling back to its first source."""
    for source in edge.sources:
        if source.resource_role == ResourceRoleEnum.primary_knowledge_source:
            return source.resource_id
    if edge.sources:
        return edge.sources[0].resource_id
    return None


def find_evidence(
    edge: Edge,
    log_odds_ratio_attribute: str,
    total_sample_size_attribute: str,
) -> List[Tuple[Optional[float], Optional[int]]]:
    """Find (log_odds_ratio, total_sample_size) pairs reported on an edge.

    Tags directly on the edge make up one pair. Every attribute whose nested
    values carry the tags (e.g. a study result) makes up another.
    """
    found = []
    tags = (log_odds_ratio_attribute, total_sample_size_attribute)

    top_level = {}
    for attribute in edge.attributes or []:
        if attribute.attribute_type_id in tags:
            top_level.setdefault(attribute.attribute_type_id, attribute.value)
        nested = {
            value["attribute_type_id"]: value.get("value")
            for value in attribute.attributes or []
            if isinstance(value, dict) and value.get("attribute_type_id") in tags
        }
        if nested:
            found.append(
                (
                    _as_float(nested.get(log_odds_ratio_attribute)),
                    _as_int(nested.get(total_sample_size_attribute)),
                )
            )
    if top_level:
        found.insert(
            0,
            (
                _as_float(top_level.get(log_odds_ratio_attribute)),
                _as_int(top_level.get(total_sample_size_attribute)),
            ),
        )
    return found


def build_evidence_map(
    message: Message,
    log_odds_ratio_attribute: Optional[str] = None,
    total_sample_size_attribute: Optional[str] = None,
) -> EvidenceMap:
    """Group numeric edge evidence by (subject, object)."""
    log_odds_ratio_attribute = (
        log_odds_ratio_attribute or settings.log_odds_ratio_attribute
    )
    total_sample_size_attribute = (
        total_sample_size_attribute or settings.total_sample_size_attribute
    )
    evidence_map = defaultdict(list)
    if message.knowledge_graph is None:
        return {}
    for edge_id, edge in message.knowledge_graph.edges.items():
        for log_odds_ratio, total_sample_size in find_evidence(
            edge,
            log_odds_ratio_attribute,
            total_sample_size_attribute,
        ):
            evidence_map[(edge.subject, edge.object)].append(
                Evidence(
                    edge_resource_id(edge),
                    edge_id,
                    log_odds_ratio,
                    total_sample_size,
                )
            )
    return dict(evidence_map)


def compute_composite_score(evidence: List[Evidence]) -> float:
    """Sample-size weighted mean of the log-odds ratios.

    Entries missing either number are left out. NaN if nothing is left or
    the sample sizes sum to zero.
    """
    usable = [
        (item.log_odds_ratio, item.total_sample_size)
        for item in evidence
        if item.log_odds_ratio is not None and item.total_sample_size is not None
    ]
    log_odds_ratios = np.array([lor for lor, _ in usable], dtype=float)
    sample_sizes = np.array([size for _, size in usable], dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        weights = sample_sizes / np.sum(sample_sizes)
        score = np.sum(weights * log_odds_ratios) / np.sum(weights)
    return float(score)


def normalize_score(score: float) -> float:
    """Squash a log-odds score into (-1, 1); positive scores land in (0, 1)."""
    return math.atan(score) * 2 / math.pi


def score_evidence(evidence: List[Evidence], fallback: Optional[float] = None) -> float:
    """Normalized composite score, with the fallback standing in for NaN."""
    if fallback is None:
        fallback = settings.nan_fallback_score
    score = compute_composite_score(evidence)
    if math.isnan(score):
        score = fallback
    return normalize_score(score)


def composite_score(result: Result, resource_id: Optional[str] = None) -> float:
    """Best composite score attached to a result, -inf if there is none."""
    resource_id = resource_id or settings.composite_resource_id
    scores = [
        analysis.score
        for analysis in result.analyses
        if analysis.resource_id == resource_id and analysis.score is not None
    ]
    return max(scores, default=float("-inf"))


def score_message(
    message: Message,
    evidence_map: Optional[EvidenceMap] = None,
    resource_id: Optional[str] = None,
    scoring_method: Optional[str] = None,
    fallback: Optional[float] = None,
    logger: logging.Logger = LOGGER,
) -> Message:
    """Attach a composite analysis to every result with numeric evidence.

    For each query edge the first bound subject and object are looked up in
    the evidence map, in that order and then swapped. Results are re-sorted
    by composite score, highest first.
    """
    resource_id = resource_id or settings.composite_resource_id
    scoring_method = scoring_method or settings.composite_scoring_method
    if not message.results:
        return message
    if message.query_graph is None or not message.query_graph.edges:
        logger.warning("Cannot compute composite scores without query edges")
        return message
    if evidence_map is None:
        evidence_map = build_evidence_map(message)

    num_scored = 0
    for result in message.results:
        evidence = []
        edge_ids = defaultdict(list)
        for qedge_id, qedge in message.query_graph.edges.items():
            subject_bindings = result.node_bindings.get(qedge.subject) or []
            object_bindings = result.node_bindings.get(qedge.object) or []
            if not subject_bindings or not object_bindings:
                continue
            pair = (subject_bindings[0].id, object_bindings[0].id)
            found = evidence_map.get(pair)
            if found is None:
                found = evidence_map.get(pair[::-1])
            if found is None:
                continue
            evidence.extend(found)
            for item in found:
                if item.knowledge_graph_edge_id not in edge_ids[qedge_id]:
                    edge_ids[qedge_id].append(item.knowledge_graph_edge_id)
        if not evidence:
            continue
        result.analyses.append(
            Analysis(
                resource_id=resource_id,
                score=score_evidence(evidence, fallback),
                scoring_method=scoring_method,
                edge_bindings={
                    qedge_id: [EdgeBinding(id=edge_id) for edge_id in ids]
                    for qedge_id, ids in edge_ids.items()
                },
            )
        )
        num_scored += 1

    message.results.sort(
        key=lambda result: composite_score(result, resource_id),
        reverse=True,
    )
    logger.info(f"Computed composite scores for {num_scored} of {len(message.results)} results")
    return message
