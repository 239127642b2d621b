import pytest

from lazy_collections import (
    LazyDict,
    LazyList,
    LazySet,
    as_lazy_list,
    as_lazy_set,
    enumerate_only_once,
    to_lazy_dict,
    to_lazy_list,
    to_lazy_set,
)


class TestConstructionHelpers:
    """Test the wrapping helpers"""

    def test_to_helpers_build_expected_shapes(self):
        assert isinstance(to_lazy_list([1]), LazyList)
        assert isinstance(to_lazy_set([1]), LazySet)
        assert isinstance(to_lazy_dict([(1, 2)]), LazyDict)

    def test_to_helpers_always_wrap(self):
        """Test that to_* creates a new view even over an existing one"""
        inner = LazyList([1, 2])
        outer = to_lazy_list(inner)

        assert outer is not inner
        assert outer.to_list() == [1, 2]

    def test_as_helpers_reuse_matching_shape(self):
        lazy_list = LazyList([1])
        lazy_set = LazySet([1])

        assert as_lazy_list(lazy_list) is lazy_list
        assert as_lazy_set(lazy_set) is lazy_set
        assert as_lazy_set(lazy_list) is not lazy_list

    def test_to_lazy_dict_reuses_without_selectors(self):
        lazy = LazyDict([("a", 1)])

        assert to_lazy_dict(lazy) is lazy
        assert to_lazy_dict(lazy, key_selector=lambda pair: pair[0]) is not lazy

    @pytest.mark.parametrize("existing", [LazyList([1]), LazySet([1]), LazyDict([(1, 1)])])
    def test_enumerate_only_once_keeps_any_lazy_collection(self, existing):
        assert enumerate_only_once(existing) is existing

    def test_enumerate_only_once_wraps_plain_iterables(self, counting):
        """Test that a plain iterable gets list semantics and one pass"""
        source = counting(x * x for x in range(4))
        once = enumerate_only_once(source)

        assert isinstance(once, LazyList)
        assert once.to_list() == [0, 1, 4, 9]
        assert once.to_list() == [0, 1, 4, 9]
        assert source.iterations == 1

    def test_nested_views_pull_once(self, counting):
        """Test a view built on another view"""
        source = counting(range(5))
        inner = LazyList(source)
        outer = LazySet(inner)

        assert 3 in outer
        assert inner.cached_count() == 4
        assert inner.to_list() == [0, 1, 2, 3, 4]
        assert outer.total_count() == 5
        assert source.produced == 5
