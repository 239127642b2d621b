"""Lazily enumerated collections that pull from their source at most once."""

from .lazy import (
    LazyCollection,
    LazyCollectionError,
    LazyDict,
    LazyList,
    LazySet,
    KeyNotFoundError,
    OutOfRangeError,
    PullSource,
    ReplayCursor,
    as_lazy_list,
    as_lazy_set,
    enumerate_only_once,
    to_lazy_dict,
    to_lazy_list,
    to_lazy_set,
)
from .models import CollectionStats, LazySettings, OperationMetrics
from .utils import setup_logging

__all__ = [
    "LazyCollection",
    "LazyCollectionError",
    "LazyDict",
    "LazyList",
    "LazySet",
    "KeyNotFoundError",
    "OutOfRangeError",
    "PullSource",
    "ReplayCursor",
    "as_lazy_list",
    "as_lazy_set",
    "enumerate_only_once",
    "to_lazy_dict",
    "to_lazy_list",
    "to_lazy_set",
    "CollectionStats",
    "LazySettings",
    "OperationMetrics",
    "setup_logging",
]
