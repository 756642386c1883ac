import inspect
import json
import random
import re

from trapi_merge.models import Message


def query_graph_from_string(s):
    """
    Parse a query graph from Mermaid flowchart syntax.
    Useful for writing examples in tests.

    Syntax information can be found here:
    https://mermaid-js.github.io/mermaid/#/flowchart

    Example:

    n0(( ids[] MONDO:0005737 ))
    n1(( categories[] biolink:SmallMolecule ))
    n1-- biolink:treats -->n0
    """

    # This usually comes from triple quoted strings
    # so we use inspect.cleandoc to remove leading indentation
    s = inspect.cleandoc(s)

    node_re = r"(?P<id>.*)\(\( (?P<key>.*) (?P<val>.*) \)\)"
    edge_re = r"(?P<src>.*)-- (?P<predicates>.*) -->(?P<target>.*)"
    qg = {"nodes": {}, "edges": {}}
    for line in s.splitlines():
        match_node = re.search(node_re, line)
        match_edge = re.search(edge_re, line)
        if match_node:
            node_id = match_node.group('id')
            node = qg["nodes"].setdefault(node_id, dict())
            key = match_node.group('key')
            if key.endswith("[]"):
                node[key[:-2]] = \
                    node.get(key[:-2], []) + [match_node.group('val')]
            else:
                node[key] = \
                    match_node.group('val')
        elif match_edge:
            edge_id = match_edge.group('src') + match_edge.group('target')
            qg['edges'][edge_id] = {
                "subject": match_edge.group('src'),
                "object": match_edge.group('target'),
                "predicates": match_edge.group('predicates').split(" "),
            }
        else:
            raise ValueError(f"Invalid line: {line}")
    return qg


def attribute(attribute_type_id, value, name=None, **kwargs):
    """Build an attribute dict."""
    return {
        "attribute_type_id": attribute_type_id,
        "original_attribute_name": name,
        "value": value,
        **kwargs,
    }


def edge(subject, predicate, object, resource_id="infores:kp0", attributes=None):
    """Build a knowledge graph edge dict with a single primary source."""
    return {
        "subject": subject,
        "predicate": predicate,
        "object": object,
        "sources": [
            {
                "resource_id": resource_id,
                "resource_role": "primary_knowledge_source",
            },
        ],
        "attributes": attributes or [],
    }


def result(node_bindings, edge_bindings, resource_id="infores:kp0", score=None):
    """
    Build a result dict with one analysis.

    node_bindings maps qnode ids to a curie or a list of curies,
    edge_bindings maps qedge ids to a list of edge ids.
    """
    return {
        "node_bindings": {
            qnode_id: [
                {"id": curie}
                for curie in ([curies] if isinstance(curies, str) else curies)
            ]
            for qnode_id, curies in node_bindings.items()
        },
        "analyses": [
            {
                "resource_id": resource_id,
                "score": score,
                "edge_bindings": {
                    qedge_id: [{"id": edge_id} for edge_id in edge_ids]
                    for qedge_id, edge_ids in edge_bindings.items()
                },
            },
        ],
    }


def message(results=None, nodes=None, edges=None, query_graph=None):
    """Build a Message from its parts."""
    return Message.model_validate(
        {
            "query_graph": query_graph or {"nodes": {}, "edges": {}},
            "knowledge_graph": {"nodes": nodes or {}, "edges": edges or {}},
            "results": results or [],
        }
    )


def canonical_json(message: Message) -> str:
    """Serialize a message with sorted keys for byte-wise comparison."""
    return json.dumps(
        message.model_dump(mode="json", exclude_none=True),
        sort_keys=True,
    )


def edge_binding_ids(analysis):
    """Map qedge ids to the bound edge ids of an analysis."""
    return {
        qedge_id: [binding.id for binding in bindings]
        for qedge_id, bindings in analysis.edge_bindings.items()
    }


def generate_message(rng: random.Random, spec) -> Message:
    """
    Generate a random message over small id pools so that
    messages generated with the same spec overlap. Example spec:

    {
        "diseases": 3,
        "drugs": 5,
        "results": 4,
        "edges_per_result": 2,
        "resources": ["infores:kp0", "infores:kp1"],
        "attributes_per_node": 2,
    }
    """
    diseases = [f"MONDO:{i:07}" for i in range(spec["diseases"])]
    drugs = [f"CHEBI:{i}" for i in range(spec["drugs"])]

    # every (type, name) pair always carries the same value
    attribute_pool = [
        attribute("biolink:synonym", f"synonym {i}", name=f"name{i}")
        for i in range(10)
    ]

    pairs = rng.sample(
        [(disease, drug) for disease in diseases for drug in drugs],
        spec["results"],
    )
    nodes = {}
    edges = {}
    results = []
    for disease, drug in pairs:
        for curie, category in ((disease, "biolink:Disease"), (drug, "biolink:Drug")):
            nodes[curie] = {
                "name": curie.lower(),
                "categories": [category],
                "attributes": rng.sample(attribute_pool, spec["attributes_per_node"]),
            }
        edge_ids = []
        for _ in range(spec["edges_per_result"]):
            edge_id = f"{drug}-{disease}-{rng.randrange(4)}"
            resource_id = rng.choice(spec["resources"])
            edges[edge_id] = edge(drug, "biolink:treats", disease, resource_id)
            edge_ids.append(edge_id)
        results.append(
            result(
                {"n0": disease, "n1": drug},
                {"n1n0": edge_ids},
                resource_id=rng.choice(spec["resources"]),
            )
        )
    return message(
        results=results,
        nodes=nodes,
        edges=edges,
        query_graph=query_graph_from_string(
            """
            n0(( categories[] biolink:Disease ))
            n1(( categories[] biolink:Drug ))
            n1-- biolink:treats -->n0
            """
        ),
    )
