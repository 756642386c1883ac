"""Canonical ordering and deduplication of mergeable collections.

Every collection that is merged by appending (attributes, qualifiers,
retrieval sources, categories, edge bindings) is put through one of these
functions afterwards so that two semantically equal collections compare equal
no matter what order their entries arrived in.

Sorting is followed by removal of *adjacent* duplicates under full structural
equality, so distinct entries that happen to share a sort key both survive.
"""
from functools import cmp_to_key, partial
import json
from typing import List, Optional

from .config import settings
from .models import Attribute, EdgeBinding, Qualifier, ResourceRoleEnum, RetrievalSource
from .utils import is_absent

ROLE_RANK = {role: rank for rank, role in enumerate(ResourceRoleEnum)}


def dedup(items: list) -> list:
    """Remove adjacent duplicates."""
    deduped = []
    for item in items:
        if not deduped or deduped[-1] != item:
            deduped.append(item)
    return deduped


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _structural_key(model) -> str:
    return json.dumps(model.model_dump(mode="json"), sort_keys=True, default=str)


def compare_attributes(a: Attribute, b: Attribute, total_order: bool = False) -> int:
    """Three-way comparison on (attribute_type_id, original_attribute_name).

    An attribute with an original_attribute_name sorts before one without.

    Two attributes with the same type id that both lack a name are
    *unordered*: the comparator answers "less" in both directions rather than
    "equal". This is not a total order; sorting such entries depends on their
    input order, and structurally equal ones only collapse when they end up
    adjacent. Pass ``total_order=True`` to treat them as equal and break every
    tie on the full serialized attribute instead.
    """
    by_type = _cmp(a.attribute_type_id, b.attribute_type_id)
    if by_type:
        return by_type
    a_name, b_name = a.original_attribute_name, b.original_attribute_name
    if a_name is not None and b_name is not None:
        by_name = _cmp(a_name, b_name)
    elif a_name is not None:
        return -1
    elif b_name is not None:
        return 1
    elif not total_order:
        return -1
    else:
        by_name = 0
    if by_name or not total_order:
        return by_name
    return _cmp(_structural_key(a), _structural_key(b))


def canonical_attributes(
    attributes: Optional[List[Attribute]],
    total_order: Optional[bool] = None,
) -> Optional[List[Attribute]]:
    """Sort and deduplicate attributes."""
    if attributes is None:
        return None
    if total_order is None:
        total_order = settings.attribute_total_order
    key = cmp_to_key(partial(compare_attributes, total_order=total_order))
    return dedup(sorted(attributes, key=key))


def canonical_qualifiers(
    qualifiers: Optional[List[Qualifier]],
) -> Optional[List[Qualifier]]:
    """Sort and deduplicate qualifiers."""
    if qualifiers is None:
        return None
    return dedup(
        sorted(
            qualifiers,
            key=lambda qualifier: (qualifier.qualifier_type_id, qualifier.qualifier_value),
        )
    )


def canonical_strings(values: Optional[List[str]]) -> Optional[List[str]]:
    """Sort and deduplicate plain strings (categories, support graph ids)."""
    if values is None:
        return None
    return dedup(sorted(values))


canonical_categories = canonical_strings


def _copy_list(values: Optional[list]) -> Optional[list]:
    return None if values is None else list(values)


def source_key(source: RetrievalSource):
    """Uniqueness key of a retrieval source."""
    return source.resource_id, ROLE_RANK[source.resource_role]


def canonical_sources(
    sources: Optional[List[RetrievalSource]],
) -> Optional[List[RetrievalSource]]:
    """Sort retrieval sources and unify the ones sharing (resource_id, resource_role).

    Unified sources keep the first non-empty value of each optional field.
    """
    if sources is None:
        return None
    unified = []
    for source in sorted(sources, key=source_key):
        if unified and source_key(unified[-1]) == source_key(source):
            kept = unified[-1]
            if is_absent(kept.upstream_resource_ids):
                kept.upstream_resource_ids = _copy_list(source.upstream_resource_ids)
            if is_absent(kept.source_record_urls):
                kept.source_record_urls = _copy_list(source.source_record_urls)
        else:
            unified.append(source)
    return unified


def canonical_edge_bindings(
    bindings: Optional[List[EdgeBinding]],
) -> Optional[List[EdgeBinding]]:
    """Sort edge bindings by id and drop duplicates."""
    if bindings is None:
        return None
    for binding in bindings:
        binding.attributes = canonical_attributes(binding.attributes)
    return dedup(sorted(bindings, key=lambda binding: binding.id))
