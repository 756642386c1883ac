"""TRAPI models."""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

CURIE = str
BiolinkEntity = str
BiolinkPredicate = str


class LogLevel(str, Enum):
    """Log level."""

    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"


class ResourceRoleEnum(str, Enum):
    """Role of a knowledge source in an edge's provenance chain."""

    primary_knowledge_source = "primary_knowledge_source"
    aggregator_knowledge_source = "aggregator_knowledge_source"
    supporting_data_source = "supporting_data_source"


class LogEntry(BaseModel):
    """Log entry."""

    timestamp: Optional[str] = None
    level: Optional[LogLevel] = None
    code: Optional[str] = None
    message: Optional[str] = None


class Attribute(BaseModel):
    """Node/edge attribute.

    Nested ``attributes`` are kept as untyped JSON values, they are never
    merged recursively.
    """

    attribute_type_id: CURIE
    original_attribute_name: Optional[str] = None
    value: Any
    value_type_id: Optional[CURIE] = None
    attribute_source: Optional[str] = None
    value_url: Optional[str] = None
    description: Optional[str] = None
    attributes: Optional[List[Any]] = None


class Qualifier(BaseModel):
    """Edge qualifier."""

    qualifier_type_id: CURIE
    qualifier_value: str


class AttributeConstraint(BaseModel):
    """Attribute constraint."""

    model_config = ConfigDict(populate_by_name=True)

    id: CURIE
    name: str
    # "not" is reserved in Python
    negated: bool = Field(False, alias="not")
    operator: str
    value: Any
    unit_id: Optional[str] = None
    unit_name: Optional[str] = None


class QualifierConstraint(BaseModel):
    """Qualifier constraint."""

    qualifier_set: List[Qualifier]


class QNode(BaseModel):
    """Query node."""

    ids: Optional[List[CURIE]] = None
    categories: Optional[List[BiolinkEntity]] = None
    is_set: Optional[bool] = None
    set_interpretation: Optional[str] = None
    constraints: Optional[List[AttributeConstraint]] = None


class QEdge(BaseModel):
    """Query edge."""

    knowledge_type: Optional[str] = None
    subject: str
    predicates: Optional[List[BiolinkPredicate]] = None
    object: str
    attribute_constraints: Optional[List[AttributeConstraint]] = None
    qualifier_constraints: Optional[List[QualifierConstraint]] = None


class QueryGraph(BaseModel):
    """Query graph."""

    nodes: Dict[str, QNode] = Field(default_factory=dict)
    edges: Dict[str, QEdge] = Field(default_factory=dict)


class RetrievalSource(BaseModel):
    """One provenance hop for a knowledge graph edge."""

    resource_id: CURIE
    resource_role: ResourceRoleEnum
    upstream_resource_ids: Optional[List[CURIE]] = None
    source_record_urls: Optional[List[str]] = None


class Node(BaseModel):
    """Knowledge graph node."""

    name: Optional[str] = None
    categories: Optional[List[BiolinkEntity]] = None
    attributes: Optional[List[Attribute]] = None


class Edge(BaseModel):
    """Knowledge graph edge."""

    subject: CURIE
    predicate: BiolinkPredicate
    object: CURIE
    sources: List[RetrievalSource] = Field(default_factory=list)
    attributes: Optional[List[Attribute]] = None
    qualifiers: Optional[List[Qualifier]] = None


class KnowledgeGraph(BaseModel):
    """Knowledge graph."""

    nodes: Dict[CURIE, Node] = Field(default_factory=dict)
    edges: Dict[str, Edge] = Field(default_factory=dict)


class NodeBinding(BaseModel):
    """Node binding."""

    id: CURIE
    query_id: Optional[CURIE] = None
    attributes: Optional[List[Attribute]] = None


class EdgeBinding(BaseModel):
    """Edge binding."""

    id: str
    attributes: Optional[List[Attribute]] = None


class Analysis(BaseModel):
    """One resource's scored explanation of a result."""

    resource_id: str
    score: Optional[float] = None
    scoring_method: Optional[str] = None
    support_graphs: Optional[List[str]] = None
    edge_bindings: Dict[str, List[EdgeBinding]] = Field(default_factory=dict)
    attributes: Optional[List[Attribute]] = None


class Result(BaseModel):
    """Result."""

    node_bindings: Dict[str, List[NodeBinding]] = Field(default_factory=dict)
    analyses: List[Analysis] = Field(default_factory=list)


class AuxiliaryGraph(BaseModel):
    """Auxiliary graph."""

    edges: List[str] = Field(default_factory=list)
    attributes: Optional[List[Attribute]] = None


class Message(BaseModel):
    """Message."""

    query_graph: Optional[QueryGraph] = None
    knowledge_graph: Optional[KnowledgeGraph] = None
    results: Optional[List[Result]] = None
    auxiliary_graphs: Optional[Dict[str, AuxiliaryGraph]] = None


class Workflow(BaseModel):
    """Workflow operation."""

    id: str
    parameters: Optional[Dict[str, Any]] = None
    runner_parameters: Optional[Dict[str, Any]] = None


class Query(BaseModel):
    """Query."""

    message: Message
    log_level: Optional[LogLevel] = None
    workflow: Optional[List[Workflow]] = None
    submitter: Optional[str] = None


class Response(BaseModel):
    """Response."""

    message: Message
    status: Optional[str] = None
    description: Optional[str] = None
    logs: Optional[List[LogEntry]] = None
    workflow: Optional[List[Workflow]] = None
    schema_version: Optional[str] = None
    biolink_version: Optional[str] = None
