"""Result reconciliation.

Results carry no id of their own. Two results are "the same answer" when
they bind the same knowledge graph nodes to the same query nodes, and two
analyses are "the same explanation" when they come from the same resource
with the same score.
"""
import logging
from typing import Callable, Dict, List, Optional

from .config import settings
from .models import Analysis, Result

LOGGER = logging.getLogger(__name__)


def result_identity(result: Result, all_bindings: bool = False) -> tuple:
    """Structural identity of a result.

    A tuple of (qnode_id, bound id) sorted by qnode_id. Only the first node
    binding of every query node takes part, so results that differ only in
    their second or later bindings share an identity. With
    ``all_bindings=True`` the full tuple of bound ids is used instead.
    """
    if all_bindings:
        return tuple(
            (qnode_id, tuple(binding.id for binding in bindings))
            for qnode_id, bindings in sorted(result.node_bindings.items())
        )
    return tuple(
        (qnode_id, bindings[0].id if bindings else None)
        for qnode_id, bindings in sorted(result.node_bindings.items())
    )


def identity_sort_key(identity: tuple) -> tuple:
    """Make an identity orderable (missing bindings sort first)."""
    return tuple((qnode_id, "" if ids is None else ids) for qnode_id, ids in identity)


def analyses_match(a: Analysis, b: Analysis) -> bool:
    """Check whether two analyses are the same explanation.

    Scores must both be absent or both present and numerically equal.
    """
    if a.resource_id != b.resource_id:
        return False
    if a.score is None or b.score is None:
        return a.score is None and b.score is None
    return a.score == b.score


def analysis_sort_key(analysis: Analysis) -> tuple:
    """Order analyses by (resource_id, score), unscored first."""
    return (
        analysis.resource_id,
        analysis.score is not None,
        analysis.score if analysis.score is not None else 0.0,
    )


class ResultReconciler:
    """Match results and analyses across two result lists.

    ``merge_fn(left, right)`` merges two matched analyses or node bindings
    in place; field-level merging is the ``Merger``'s job, this class only
    decides what matches what.

    ``append_unmatched`` only governs reconciliation across two lists.
    Collapsing entries of one list never drops anything; ``collapse_fn``
    (defaults to ``merge_fn``) is the field-level merge used while
    collapsing and must keep unshared entries as well.
    """

    def __init__(
        self,
        merge_fn: Callable,
        append_unmatched: Optional[bool] = None,
        all_bindings: Optional[bool] = None,
        logger: Optional[logging.Logger] = None,
        collapse_fn: Optional[Callable] = None,
    ):
        """Initialize."""
        self.merge_fn = merge_fn
        self.collapse_fn = collapse_fn or merge_fn
        if append_unmatched is None:
            append_unmatched = settings.append_unmatched
        if all_bindings is None:
            all_bindings = settings.result_identity_all_bindings
        self.append_unmatched = append_unmatched
        self.all_bindings = all_bindings
        self.logger = logger or LOGGER

    def identity(self, result: Result) -> tuple:
        return result_identity(result, self.all_bindings)

    def group(self, results: List[Result]) -> Dict[tuple, List[Result]]:
        """Group results by identity, keeping first-seen order."""
        groups = {}
        for result in results:
            groups.setdefault(self.identity(result), []).append(result)
        return groups

    def merge_results(self, accumulator: List[Result], incoming: List[Result]) -> None:
        """Reconcile incoming results into the accumulator in place.

        An empty accumulator adopts the incoming results wholesale. Otherwise
        every accumulator result absorbs the incoming results sharing its
        identity. Incoming results with no counterpart are dropped unless
        ``append_unmatched`` is set.
        """
        if not accumulator:
            accumulator.extend(incoming)
            return

        incoming_groups = self.group(incoming)
        matched = set()
        for result in accumulator:
            key = self.identity(result)
            for other in incoming_groups.get(key, []):
                self.merge_result(result, other)
            if key in incoming_groups:
                matched.add(key)

        for key, group in incoming_groups.items():
            if key in matched:
                continue
            if not self.append_unmatched:
                self.logger.debug(
                    f"Dropping {len(group)} incoming result(s) with no counterpart: {key}"
                )
                continue
            first, *rest = group
            for other in rest:
                self.merge_result(first, other)
            accumulator.append(first)

    def merge_result(
        self,
        left: Result,
        right: Result,
        append_unmatched: Optional[bool] = None,
        merge_fn: Optional[Callable] = None,
    ) -> Result:
        """Fold the evidence of right into left (two results, same identity)."""
        if append_unmatched is None:
            append_unmatched = self.append_unmatched
        merge_fn = merge_fn or self.merge_fn
        matched = set()
        for analysis in left.analyses:
            index = next(
                (
                    index
                    for index, other in enumerate(right.analyses)
                    if analyses_match(analysis, other)
                ),
                None,
            )
            if index is None:
                continue
            matched.add(index)
            merge_fn(analysis, right.analyses[index])

        for index, other in enumerate(right.analyses):
            if index in matched:
                continue
            if append_unmatched:
                left.analyses.append(other)
            else:
                self.logger.debug(
                    f"Dropping analysis from {other.resource_id} (score {other.score}) with no counterpart"
                )

        for qnode_id, bindings in right.node_bindings.items():
            if qnode_id not in left.node_bindings:
                continue
            left_bindings = left.node_bindings[qnode_id]
            for binding in bindings:
                target = next(
                    (existing for existing in left_bindings if existing.id == binding.id),
                    None,
                )
                if target is not None:
                    merge_fn(target, binding)
                elif append_unmatched:
                    left_bindings.append(binding)
                else:
                    self.logger.debug(
                        f"Dropping unpaired node binding {binding.id} for {qnode_id}"
                    )
        return left

    def collapse_results(self, results: List[Result]) -> List[Result]:
        """Fold results of one list that share an identity into the first one.

        Analyses and node bindings without a counterpart are kept.
        """
        collapsed = {}
        for result in results:
            key = self.identity(result)
            if key in collapsed:
                self.merge_result(
                    collapsed[key],
                    result,
                    append_unmatched=True,
                    merge_fn=self.collapse_fn,
                )
            else:
                collapsed[key] = result
        return list(collapsed.values())

    def collapse_analyses(self, analyses: List[Analysis]) -> List[Analysis]:
        """Fold analyses of one result that are the same explanation."""
        collapsed = []
        for analysis in analyses:
            target = next(
                (existing for existing in collapsed if analyses_match(existing, analysis)),
                None,
            )
            if target is None:
                collapsed.append(analysis)
            else:
                self.collapse_fn(target, analysis)
        return collapsed
