"""
Configuration for pytest to set up the import paths and shared fixtures.
"""

import sys
from pathlib import Path
import pytest


# Add the repository root so the package imports without being installed
parent_dir = Path(__file__).parent.parent
sys.path.insert(0, str(parent_dir))

# Import after path setup
from lazy_collections import LazyList, LazySet, to_lazy_dict
from lazy_collections.utils import CountingIterable, clear_performance_metrics, get_settings


def _distinct(items):
    return list(dict.fromkeys(items))


class Shape:
    """A presentation shape plus what a direct iteration of its source should look like."""

    def __init__(self, name, build, view):
        self.name = name
        self.build = build
        self.view = view

    def __repr__(self):
        return f"Shape({self.name})"


SHAPES = [
    Shape("list", LazyList, list),
    Shape("set", LazySet, _distinct),
    Shape(
        "dict",
        lambda source: to_lazy_dict(source, lambda i: i, lambda i: i * 10),
        lambda items: [(i, i * 10) for i in _distinct(items)]
    ),
]


@pytest.fixture(params=SHAPES, ids=[shape.name for shape in SHAPES])
def shape(request):
    """Each presentation shape, built from a plain iterable of ints."""
    return request.param


@pytest.fixture
def counting():
    """Factory wrapping an iterable so its consumption can be observed."""
    return CountingIterable


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached per process; drop the cache around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clean_metrics():
    clear_performance_metrics()
    yield
    clear_performance_metrics()
