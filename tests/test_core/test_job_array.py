"""Tests for array index selection."""

import pytest

from sbatch_commandlist.core.exceptions import InvalidInput
from sbatch_commandlist.core.job_array import ArraySpec


class TestArraySpecParse:
    """Tests for ArraySpec.parse()."""

    def test_range(self):
        spec = ArraySpec.parse("0-4")
        assert spec.indices == [0, 1, 2, 3, 4]
        assert spec.max_concurrent is None

    def test_list(self):
        assert ArraySpec.parse("3,1,7").indices == [1, 3, 7]

    def test_strided_range(self):
        assert ArraySpec.parse("0-10:5").indices == [0, 5, 10]

    def test_concurrency_cap(self):
        spec = ArraySpec.parse("1-100%5")
        assert spec.count == 100
        assert spec.max_concurrent == 5

    def test_mixed(self):
        spec = ArraySpec.parse("0-2,8,10-14:2%3")
        assert spec.indices == [0, 1, 2, 8, 10, 12, 14]
        assert spec.range_str == "0-2,8,10-14:2%3"

    @pytest.mark.parametrize("bad", ["", "a-b", "5-1", "1-10:0", "1-3%0", "1-3%x", "1,,2"])
    def test_invalid(self, bad):
        with pytest.raises(InvalidInput):
            ArraySpec.parse(bad)


class TestArraySpecFromIndices:
    """Tests for ArraySpec.from_indices()."""

    def test_collapses_runs(self):
        spec = ArraySpec.from_indices([0, 1, 2, 5, 7, 8])
        assert spec.range_str == "0-2,5,7-8"

    def test_unsorted_with_duplicates(self):
        spec = ArraySpec.from_indices([4, 2, 3, 3])
        assert spec.range_str == "2-4"

    def test_with_cap(self):
        spec = ArraySpec.from_indices(range(200), max_concurrent=20)
        assert str(spec) == "0-199%20"
