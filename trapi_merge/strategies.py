"""Field merge strategies.

A strategy is called with the accumulator's value, the incoming value and
the ``Merger`` doing the visiting, and returns the value the accumulator
field should hold afterwards.
"""
from typing import Callable

from .utils import is_absent


class MergeStrategy:
    """Merge strategy for one field."""

    def __call__(self, left, right, merger):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}()"


class Skip(MergeStrategy):
    """Keep the left value unconditionally."""

    def __call__(self, left, right, merger):
        return left


class FillIfAbsent(MergeStrategy):
    """Take the right value only if the left one is missing or empty."""

    def __call__(self, left, right, merger):
        if is_absent(left):
            return right
        return left


class AppendCanonicalize(MergeStrategy):
    """Concatenate both collections, then canonicalize."""

    def __init__(self, canonicalize: Callable[[list], list]):
        self.canonicalize = canonicalize

    def __call__(self, left, right, merger):
        if left is None and right is None:
            return None
        return self.canonicalize([*(left or []), *(right or [])])

    def __repr__(self):
        return f"AppendCanonicalize({self.canonicalize.__name__})"


class MapUnionRecurse(MergeStrategy):
    """Union two mappings by key, merging values on collision."""

    def __call__(self, left, right, merger):
        if left is None:
            return right
        for key, value in (right or {}).items():
            if key in left:
                left[key] = merger.merge(left[key], value)
            else:
                left[key] = value
        return left


class Custom(MergeStrategy):
    """Delegate to an arbitrary function of (left, right, merger)."""

    def __init__(self, fn: Callable):
        self.fn = fn

    def __call__(self, left, right, merger):
        return self.fn(left, right, merger)

    def __repr__(self):
        return f"Custom({self.fn.__name__})"
