from typing import Dict, Generic, Hashable, Iterator, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V", bound=Hashable)


class BidirectionalMap(Generic[K, V]):
    """
    One-to-one mapping kept consistent in both directions.

    Used by the distance graph to translate between its internal node handles
    and the view ids of the reconstruction.

    Usage:
        nodes = BidirectionalMap()
        nodes.put(node_handle, view_id)

        nodes.value(node_handle)  # -> view_id
        nodes.key(view_id)        # -> node_handle
    """

    def __init__(self):
        self._forward: Dict[K, V] = {}
        self._backward: Dict[V, K] = {}

    def put(self, key: K, value: V):
        """
        Associate key and value.

        Raises:
            ValueError: If key or value is already bound to something else
        """
        if key in self._forward and self._forward[key] != value:
            raise ValueError(f"Key {key!r} already bound to {self._forward[key]!r}")
        if value in self._backward and self._backward[value] != key:
            raise ValueError(f"Value {value!r} already bound to {self._backward[value]!r}")
        self._forward[key] = value
        self._backward[value] = key

    def value(self, key: K) -> V:
        return self._forward[key]

    def key(self, value: V) -> K:
        return self._backward[value]

    def has_key(self, key: K) -> bool:
        return key in self._forward

    def has_value(self, value: V) -> bool:
        return value in self._backward

    def pop_key(self, key: K) -> V:
        value = self._forward.pop(key)
        del self._backward[value]
        return value

    def pop_value(self, value: V) -> K:
        key = self._backward.pop(value)
        del self._forward[key]
        return key

    def keys(self):
        return self._forward.keys()

    def values(self):
        return self._backward.keys()

    def items(self) -> Iterator[Tuple[K, V]]:
        return iter(self._forward.items())

    def clear(self):
        self._forward.clear()
        self._backward.clear()

    def is_consistent(self) -> bool:
        """True if both directions describe the same one-to-one mapping"""
        if len(self._forward) != len(self._backward):
            return False
        return all(self._backward.get(v) == k for k, v in self._forward.items())

    def __len__(self) -> int:
        return len(self._forward)

    def __contains__(self, key: K) -> bool:
        return key in self._forward

    def __repr__(self):
        return f"BidirectionalMap({self._forward!r})"
