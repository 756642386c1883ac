"""Referential checks for messages.

Merging never validates anything; run these beforehand when dangling
references should be caught instead of passed through.
"""
import logging
from typing import List

from .models import Message

LOGGER = logging.getLogger(__name__)


class ValidationError(Exception):
    """Invalid message."""

    def __init__(self, problems: List[str]):
        super().__init__("; ".join(problems))
        self.problems = problems


def find_problems(message: Message) -> List[str]:
    """List every dangling reference in a message."""
    problems = []
    qgraph = message.query_graph
    kgraph = message.knowledge_graph
    aux_graphs = message.auxiliary_graphs or {}

    if qgraph is not None:
        for qedge_id, qedge in qgraph.edges.items():
            for qnode_id in (qedge.subject, qedge.object):
                if qnode_id not in qgraph.nodes:
                    problems.append(
                        f"Query edge {qedge_id} references missing query node {qnode_id}"
                    )

    if kgraph is not None:
        for edge_id, edge in kgraph.edges.items():
            for node_id in (edge.subject, edge.object):
                if node_id not in kgraph.nodes:
                    problems.append(f"Edge {edge_id} references missing node {node_id}")
        for aux_graph_id, aux_graph in aux_graphs.items():
            for edge_id in aux_graph.edges:
                if edge_id not in kgraph.edges:
                    problems.append(
                        f"Auxiliary graph {aux_graph_id} references missing edge {edge_id}"
                    )

    for index, result in enumerate(message.results or []):
        for qnode_id, bindings in result.node_bindings.items():
            if qgraph is not None and qnode_id not in qgraph.nodes:
                problems.append(f"Result {index} binds unknown query node {qnode_id}")
            for binding in bindings:
                if kgraph is not None and binding.id not in kgraph.nodes:
                    problems.append(f"Result {index} binds missing node {binding.id}")
        for analysis in result.analyses:
            for qedge_id, bindings in analysis.edge_bindings.items():
                if qgraph is not None and qedge_id not in qgraph.edges:
                    problems.append(
                        f"Result {index} ({analysis.resource_id}) binds unknown query edge {qedge_id}"
                    )
                for binding in bindings:
                    if kgraph is not None and binding.id not in kgraph.edges:
                        problems.append(
                            f"Result {index} ({analysis.resource_id}) binds missing edge {binding.id}"
                        )
            for aux_graph_id in analysis.support_graphs or []:
                if aux_graph_id not in aux_graphs:
                    problems.append(
                        f"Result {index} ({analysis.resource_id}) references missing auxiliary graph {aux_graph_id}"
                    )
    return problems


def validate_message(message: Message, logger: logging.Logger = LOGGER) -> bool:
    """Log every dangling reference; return whether there were none."""
    problems = find_problems(message)
    for problem in problems:
        logger.error(problem)
    return not problems


def ensure_valid(message: Message) -> Message:
    """Raise ValidationError if the message has dangling references."""
    problems = find_problems(message)
    if problems:
        raise ValidationError(problems)
    return message
