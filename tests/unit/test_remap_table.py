"""Unit tests for the remap_table module."""
import pytest

from src.errors import IOFailureError, RemapParseError
from src.remap_table import add_to_set, create_map, load_remap_file, resolve_remap_argument


class TestCreateMap:
    """Parsing of the literal {target:candidate, ...} form."""

    def test_repeated_targets_accumulate(self):
        table = create_map("{one: 1, two:2, three : 3 , one :11}")
        assert table == {"one": ["1", "11"], "two": ["2"], "three": ["3"]}

    def test_candidates_keep_insertion_order_without_duplicates(self):
        table = create_map("{x:b, x:a, x:b}")
        assert table == {"x": ["b", "a"]}

    @pytest.mark.parametrize("spec", [None, "{}", "  { }  "])
    def test_empty_tables(self, spec):
        assert create_map(spec) == {}

    def test_whitespace_and_newlines_are_allowed(self):
        assert create_map("{\n  a : b,\n  c:d\n}\n") == {"a": ["b"], "c": ["d"]}

    @pytest.mark.parametrize("spec", [
        "one:1",
        "{one:1",
        "one:1}",
        "{one}",
        "{a:b:c}",
        "{a:}",
        "{:b}",
        "{a:b,}",
        "",
    ])
    def test_malformed_specs(self, spec):
        with pytest.raises(RemapParseError):
            create_map(spec)


class TestAddToSet:

    def test_creates_and_extends(self):
        table = {}
        add_to_set("a", "b", table)
        add_to_set("a", "c", table)
        add_to_set("a", "b", table)
        assert table == {"a": ["b", "c"]}


class TestLoadRemapFile:

    def test_literal_file(self, write_file):
        path = write_file("remap.txt", "{greeting:hello,\n farewell:bye}\n")
        assert load_remap_file(path) == {"greeting": ["hello"], "farewell": ["bye"]}

    def test_yaml_file(self, write_file):
        path = write_file("remap.yaml", "greeting: hello\nfarewell:\n  - bye\n  - goodbye\n")
        assert load_remap_file(path) == {"greeting": ["hello"], "farewell": ["bye", "goodbye"]}

    def test_empty_yaml_file(self, write_file):
        assert load_remap_file(write_file("remap.yml", "")) == {}

    @pytest.mark.parametrize("content", [
        "greeting: 1\n",
        "greeting: []\n",
        "- a\n- b\n",
        "greeting: [hello, {nested: x}]\n",
        "greeting: [unclosed\n",
    ])
    def test_invalid_yaml_files(self, write_file, content):
        with pytest.raises(RemapParseError):
            load_remap_file(write_file("remap.yaml", content))

    def test_missing_file(self, tmp_path):
        with pytest.raises(IOFailureError) as exc_info:
            load_remap_file(str(tmp_path / "absent.txt"))
        assert isinstance(exc_info.value.__cause__, OSError)


class TestResolveRemapArgument:

    def test_none(self):
        assert resolve_remap_argument(None) == {}

    def test_mapping_is_normalized_and_copied(self):
        given = {"a": "b", "c": ["d", "e", "d"]}
        table = resolve_remap_argument(given)
        assert table == {"a": ["b"], "c": ["d", "e"]}
        table["a"].append("z")
        assert given == {"a": "b", "c": ["d", "e", "d"]}

    def test_literal_string(self):
        assert resolve_remap_argument("{a:b}") == {"a": ["b"]}

    def test_path_to_file(self, write_file):
        path = write_file("remap.txt", "{a:b}")
        assert resolve_remap_argument(path) == {"a": ["b"]}

    def test_string_that_is_neither(self):
        with pytest.raises(RemapParseError):
            resolve_remap_argument("no/such/remap/file.txt")
