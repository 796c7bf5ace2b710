"""Tests for difference paths, Difference and Result."""

import json

import pytest
from deepcompare import Difference, Index, MapKey, Path, Result, StructField
from deepcompare.path import EMPTY_PATH


class TestPath:
    """Test path construction and rendering."""

    def setup_method(self):
        self.path = Path.from_elems(StructField("A"), MapKey("k"), Index(2))

    def test_empty(self):
        assert str(EMPTY_PATH) == "."
        assert len(EMPTY_PATH) == 0
        assert not EMPTY_PATH
        assert list(EMPTY_PATH) == []

    def test_render(self):
        assert str(self.path) == ".A[k][2]"
        assert repr(self.path) == "Path('.A[k][2]')"

    def test_order(self):
        """Test that iteration goes from the shallowest element."""
        assert list(self.path) == [StructField("A"), MapKey("k"), Index(2)]
        assert len(self.path) == 3

    def test_prepend_is_persistent(self):
        """Test that prepending leaves the original path unchanged."""
        child = Path.from_elems(Index(1))
        parent = child.prepend(StructField("X"))
        assert str(parent) == ".X[1]"
        assert str(child) == "[1]"

    def test_equality(self):
        assert Path.from_elems(Index(1)) == EMPTY_PATH.prepend(Index(1))
        assert hash(Path.from_elems(Index(1))) == hash(EMPTY_PATH.prepend(Index(1)))
        assert Path() == EMPTY_PATH
        assert Path.from_elems(Index(1)) != Path.from_elems(MapKey("1"))

    def test_to_list(self):
        assert self.path.to_list() == [{"struct": "A"}, {"map": "k"}, {"index": 2}]

    def test_to_jsonpath(self):
        assert self.path.to_jsonpath() == "$.A.k[2]"
        assert EMPTY_PATH.to_jsonpath() == "$"
        assert Path.from_elems(StructField("A"), MapKey("a b")).to_jsonpath() == "$.A['a b']"


class TestDifference:
    """Test Difference rendering."""

    def setup_method(self):
        self.diff = Difference(
            Path.from_elems(StructField("A")), "int not equal", "1", "2"
        )

    def test_str(self):
        assert str(self.diff) == ".A: int not equal"

    def test_root_path(self):
        assert str(Difference(message="type not equal")) == ".: type not equal"

    def test_verbose(self):
        assert format(self.diff, "+") == ".A: int not equal\n\tv1=1\n\tv2=2"
        assert f"{self.diff:+}" == self.diff.format(verbose=True)

    def test_verbose_without_values(self):
        """Test that the value lines are omitted when both are empty."""
        diff = Difference(message="method .Equal() returned false")
        assert format(diff, "+") == ".: method .Equal() returned false"

    def test_unknown_format_spec(self):
        with pytest.raises(ValueError):
            format(self.diff, "x")

    def test_with_parent(self):
        assert str(self.diff.with_parent(Index(0))) == "[0].A: int not equal"

    def test_frozen(self):
        with pytest.raises(AttributeError):
            self.diff.message = "changed"

    def test_to_dict(self):
        assert self.diff.to_dict() == {
            "path": [{"struct": "A"}],
            "message": "int not equal",
            "v1": "1",
            "v2": "2",
        }
        assert Difference(message="m").to_dict() == {"message": "m"}


class TestResult:
    """Test Result rendering and helpers."""

    def setup_method(self):
        self.result = Result([
            Difference(Path.from_elems(StructField("A")), "int not equal", "1", "2"),
            Difference(Path.from_elems(Index(3)), "string not equal", '"a"', '"b"'),
        ])

    def test_empty(self):
        assert str(Result()) == "<none>"
        assert format(Result(), "+") == "<none>"
        assert Result().is_equal
        assert Result() == []

    def test_str(self):
        assert str(self.result) == ".A: int not equal\n[3]: string not equal"

    def test_verbose(self):
        expected = (
            ".A: int not equal\n\tv1=1\n\tv2=2\n"
            '[3]: string not equal\n\tv1="a"\n\tv2="b"'
        )
        assert f"{self.result:+}" == expected

    def test_paths(self):
        assert self.result.paths() == [".A", "[3]"]

    def test_prepend(self):
        """Test that prepend returns a new result."""
        nested = self.result.prepend(MapKey("x"))
        assert nested.paths() == ["[x].A", "[x][3]"]
        assert self.result.paths() == [".A", "[3]"]

    def test_merge(self):
        merged = Result().merge(self.result)
        assert merged == self.result
        assert isinstance(merged, Result)

    def test_to_list_is_json(self):
        data = json.loads(json.dumps(self.result.to_list()))
        assert data[0] == {"path": [{"struct": "A"}], "message": "int not equal", "v1": "1", "v2": "2"}
        assert data[1]["path"] == [{"index": 3}]
