"""Message merging.

Every mergeable entity declares, in ``MERGE_DESCRIPTORS``, one strategy per
field. ``Merger.merge`` visits an entity and lets each strategy compute the
accumulator's new field value. Fields without a strategy keep the
accumulator's value.
"""
import logging
from typing import Dict, Iterable, List, Optional, Union
import uuid

from .canonical import (
    canonical_attributes,
    canonical_categories,
    canonical_edge_bindings,
    canonical_qualifiers,
    canonical_sources,
    canonical_strings,
)
from .config import settings
from .logger import QueryLogger
from .models import (
    Analysis,
    AuxiliaryGraph,
    Edge,
    EdgeBinding,
    KnowledgeGraph,
    LogEntry,
    Message,
    Node,
    NodeBinding,
    Response,
    Result,
    RetrievalSource,
)
from .results import ResultReconciler, analysis_sort_key, identity_sort_key
from .strategies import (
    AppendCanonicalize,
    Custom,
    FillIfAbsent,
    MapUnionRecurse,
    MergeStrategy,
    Skip,
)

LOGGER = logging.getLogger(__name__)


def merge_optional(left, right, merger: "Merger"):
    """Merge two optional nested models."""
    if left is None:
        return right
    if right is None:
        return left
    return merger.merge(left, right)


def merge_result_lists(
    left: Optional[List[Result]],
    right: Optional[List[Result]],
    merger: "Merger",
):
    """Reconcile two result lists."""
    if left is None:
        return right
    if right is None:
        return left
    merger.reconciler.merge_results(left, right)
    return left


def merge_edge_binding_maps(
    left: Dict[str, List[EdgeBinding]],
    right: Dict[str, List[EdgeBinding]],
    merger: "Merger",
):
    """Append edge bindings for the query edges both analyses bind.

    No deduplication happens here, canonicalization takes care of it.
    """
    for qedge_id, bindings in (right or {}).items():
        if qedge_id in left:
            left[qedge_id].extend(bindings)
        elif merger.append_unmatched:
            left[qedge_id] = list(bindings)
        else:
            merger.logger.debug(f"Dropping edge bindings for unshared query edge {qedge_id}")
    return left


MERGE_DESCRIPTORS: Dict[type, Dict[str, MergeStrategy]] = {
    Message: {
        # the query graph is shared context, it is never merged
        "query_graph": FillIfAbsent(),
        "knowledge_graph": Custom(merge_optional),
        "results": Custom(merge_result_lists),
        "auxiliary_graphs": MapUnionRecurse(),
    },
    KnowledgeGraph: {
        "nodes": MapUnionRecurse(),
        "edges": MapUnionRecurse(),
    },
    Node: {
        "name": FillIfAbsent(),
        "categories": AppendCanonicalize(canonical_categories),
        "attributes": AppendCanonicalize(canonical_attributes),
    },
    Edge: {
        "subject": Skip(),
        "predicate": Skip(),
        "object": Skip(),
        "sources": AppendCanonicalize(canonical_sources),
        "attributes": AppendCanonicalize(canonical_attributes),
        "qualifiers": AppendCanonicalize(canonical_qualifiers),
    },
    RetrievalSource: {
        "resource_id": Skip(),
        "resource_role": Skip(),
        "upstream_resource_ids": FillIfAbsent(),
        "source_record_urls": FillIfAbsent(),
    },
    AuxiliaryGraph: {
        "edges": Skip(),
        "attributes": AppendCanonicalize(canonical_attributes),
    },
    NodeBinding: {
        "id": Skip(),
        "query_id": FillIfAbsent(),
        "attributes": AppendCanonicalize(canonical_attributes),
    },
    EdgeBinding: {
        "id": Skip(),
        "attributes": AppendCanonicalize(canonical_attributes),
    },
    Analysis: {
        "resource_id": Skip(),
        "score": Skip(),
        "scoring_method": FillIfAbsent(),
        "support_graphs": AppendCanonicalize(canonical_strings),
        "edge_bindings": Custom(merge_edge_binding_maps),
        "attributes": AppendCanonicalize(canonical_attributes),
    },
}


class Merger:
    """Merge visitor.

    Holds the options of one fold and the result reconciler that the
    ``results`` field strategy delegates to.
    """

    def __init__(
        self,
        append_unmatched: Optional[bool] = None,
        all_bindings: Optional[bool] = None,
        logger: Optional[logging.Logger] = None,
        descriptors: Optional[Dict[type, Dict[str, MergeStrategy]]] = None,
    ):
        """Initialize."""
        if append_unmatched is None:
            append_unmatched = settings.append_unmatched
        self.append_unmatched = append_unmatched
        self.logger = logger or LOGGER
        self.descriptors = descriptors or MERGE_DESCRIPTORS
        collapse_fn = None
        if not append_unmatched:
            # entries of one message are folded together without dropping any
            collapse_fn = Merger(
                append_unmatched=True,
                all_bindings=all_bindings,
                logger=self.logger,
                descriptors=self.descriptors,
            ).merge
        self.reconciler = ResultReconciler(
            self.merge,
            append_unmatched=append_unmatched,
            all_bindings=all_bindings,
            logger=self.logger,
            collapse_fn=collapse_fn,
        )

    def merge(self, left, right):
        """Merge right into left in place and return left."""
        descriptor = self.descriptors.get(type(left))
        if descriptor is None or right is None:
            return left
        for field, strategy in descriptor.items():
            setattr(
                left,
                field,
                strategy(getattr(left, field), getattr(right, field), self),
            )
        return left

    def canonicalize(self, message: Message) -> Message:
        """Put every mergeable collection of a message in canonical form.

        Results sharing an identity and analyses that are the same
        explanation are folded together, then results are ordered by
        identity and analyses by (resource_id, score).
        """
        kgraph = message.knowledge_graph
        if kgraph is not None:
            for node in kgraph.nodes.values():
                node.categories = canonical_categories(node.categories)
                node.attributes = canonical_attributes(node.attributes)
            for edge in kgraph.edges.values():
                edge.sources = canonical_sources(edge.sources)
                edge.attributes = canonical_attributes(edge.attributes)
                edge.qualifiers = canonical_qualifiers(edge.qualifiers)

        for aux_graph in (message.auxiliary_graphs or {}).values():
            aux_graph.attributes = canonical_attributes(aux_graph.attributes)

        if message.results is None:
            return message

        results = self.reconciler.collapse_results(message.results)
        for result in results:
            for bindings in result.node_bindings.values():
                for binding in bindings:
                    binding.attributes = canonical_attributes(binding.attributes)
            result.analyses = self.reconciler.collapse_analyses(result.analyses)
            for analysis in result.analyses:
                analysis.edge_bindings = {
                    qedge_id: canonical_edge_bindings(bindings)
                    for qedge_id, bindings in analysis.edge_bindings.items()
                }
                analysis.support_graphs = canonical_strings(analysis.support_graphs)
                analysis.attributes = canonical_attributes(analysis.attributes)
            result.analyses.sort(key=analysis_sort_key)
        results.sort(
            key=lambda result: identity_sort_key(self.reconciler.identity(result))
        )
        message.results = results
        return message


def as_message(message: Union[Message, dict]) -> Message:
    """Get a private copy of a message, parsing it if necessary."""
    if isinstance(message, Message):
        return message.model_copy(deep=True)
    return Message.model_validate(message)


def merge(
    accumulator: Message,
    incoming: Union[Message, dict],
    append_unmatched: Optional[bool] = None,
    all_bindings: Optional[bool] = None,
    logger: Optional[logging.Logger] = None,
) -> Message:
    """Merge incoming into the accumulator in place.

    The incoming message is copied first, so nothing in the accumulator
    aliases it afterwards.
    """
    merger = Merger(
        append_unmatched=append_unmatched,
        all_bindings=all_bindings,
        logger=logger,
    )
    return merger.merge(accumulator, as_message(incoming))


def canonicalize_message(
    message: Message,
    append_unmatched: Optional[bool] = None,
    all_bindings: Optional[bool] = None,
    logger: Optional[logging.Logger] = None,
) -> Message:
    """Canonicalize a message in place."""
    merger = Merger(
        append_unmatched=append_unmatched,
        all_bindings=all_bindings,
        logger=logger,
    )
    return merger.canonicalize(message)


def merge_messages(
    messages: Iterable[Union[Message, dict]],
    append_unmatched: Optional[bool] = None,
    all_bindings: Optional[bool] = None,
    logger: Optional[logging.Logger] = None,
) -> Message:
    """Fold messages into one canonical message.

    The fold is sequential; collect every message before calling this.
    """
    logger = logger or LOGGER
    merger = Merger(
        append_unmatched=append_unmatched,
        all_bindings=all_bindings,
        logger=logger,
    )
    messages = list(messages)
    if not messages:
        return Message(knowledge_graph=KnowledgeGraph(), results=[], auxiliary_graphs={})

    accumulator = as_message(messages[0])
    for index, message in enumerate(messages[1:], start=1):
        merger.merge(accumulator, as_message(message))
        logger.debug(
            f"Merged message {index}: {len(accumulator.results or [])} results so far"
        )
    merger.canonicalize(accumulator)
    logger.info(
        f"Merged {len(messages)} messages into {len(accumulator.results or [])} results"
    )
    return accumulator


def merge_responses(
    responses: Iterable[Union[Response, dict]],
    append_unmatched: Optional[bool] = None,
    all_bindings: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> Response:
    """Merge the messages of several responses and gather their logs.

    Provider logs are kept in order, followed by the entries the merge
    itself logged.
    """
    responses = [
        response if isinstance(response, Response) else Response.model_validate(response)
        for response in responses
    ]

    qid = str(uuid.uuid4())[:8]
    log_handler = QueryLogger().log_handler
    logger = logging.getLogger(f"trapi_merge.{qid}")
    logger.setLevel(logging._nameToLevel[log_level or settings.log_level])
    logger.addHandler(log_handler)
    try:
        message = merge_messages(
            (response.message for response in responses),
            append_unmatched=append_unmatched,
            all_bindings=all_bindings,
            logger=logger,
        )
    finally:
        logger.removeHandler(log_handler)

    logs = [log for response in responses for log in response.logs or []]
    logs.extend(LogEntry.model_validate(entry) for entry in log_handler.contents())
    return Response(
        message=message,
        status="Success",
        logs=logs,
        schema_version=next(
            (r.schema_version for r in responses if r.schema_version), None
        ),
        biolink_version=next(
            (r.biolink_version for r in responses if r.biolink_version), None
        ),
    )
