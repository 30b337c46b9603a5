"""
Tests for query string encoding and decoding.
"""

import pytest

from urltool.errors import InvalidArgument, UnbalancedArguments
from urltool.query import decode, encode, format_listing, merge_params, parse_token


class TestDecode:
    """Test splitting a query string into parameters."""

    def test_pairs_in_order(self):
        assert decode("b=2&a=1&c=3") == [("b", "2"), ("a", "1"), ("c", "3")]

    def test_key_without_value(self):
        assert decode("flag&empty=") == [("flag", None), ("empty", "")]

    def test_split_on_first_equals(self):
        assert decode("expr=a=b") == [("expr", "a=b")]

    def test_percent_and_plus_decoded(self):
        assert decode("q=hello+world&k%26=%3D%2B") == [("q", "hello world"), ("k&", "=+")]

    def test_empty_pieces_skipped(self):
        assert decode("&a=1&&b=2&") == [("a", "1"), ("b", "2")]
        assert decode("") == []

    def test_select_keeps_duplicates(self):
        assert decode("a=1&b=2&a=3", {"a"}) == [("a", "1"), ("a", "3")]

    def test_select_missing_key(self):
        assert decode("a=1&b=2", {"z"}) == []

    def test_select_several(self):
        assert decode("a=1&b=2&c=3", ["c", "a"]) == [("a", "1"), ("c", "3")]


class TestEncode:
    """Test building a query string from parameters."""

    def test_space_and_bare_key(self):
        assert encode([("q", "hello world"), ("flag", None)]) == "q=hello+world&flag"

    def test_reserved_characters_escaped(self):
        assert encode([("a&b", "c=d%e+f")]) == "a%26b=c%3Dd%25e%2Bf"

    def test_empty_value(self):
        assert encode([("k", "")]) == "k="

    def test_empty_list(self):
        assert encode([]) == ""

    def test_undecodable_bytes_encoded(self):
        assert encode([("k", "\udcff")]) == "k=%FF"

    def test_empty_bare_key_rejected(self):
        with pytest.raises(InvalidArgument):
            encode([("", None)])

    def test_empty_key_with_value(self):
        assert encode([("", "x")]) == "=x"
        assert decode("=x") == [("", "x")]

    def test_duplicates_kept(self):
        assert encode([("a", "1"), ("a", "2")]) == "a=1&a=2"

    @pytest.mark.parametrize(
        "params",
        [
            [("q", "hello world"), ("flag", None), ("empty", "")],
            [("a&b", "c=d%e+f"), ("ü", "naïve / café?")],
            [("x", "~-._*")],
        ],
    )
    def test_decode_inverts_encode(self, params):
        assert decode(encode(params)) == params


class TestMergeParams:
    """Test combining positional and explicit key/value arguments."""

    def test_parse_token(self):
        assert parse_token("a=1=2") == ("a", "1=2")
        assert parse_token("a=") == ("a", "")
        assert parse_token("a") == ("a", None)

    def test_positional_only(self):
        assert merge_params(["a=1", "b"], [], []) == [("a", "1"), ("b", None)]

    def test_explicit_pairs_appended(self):
        assert merge_params(["a=1"], ["b", "c"], ["2", "3"]) == [("a", "1"), ("b", "2"), ("c", "3")]

    def test_explicit_pair_wins(self):
        assert merge_params(["a=1", "b=2"], ["a"], ["9"]) == [("a", "9"), ("b", "2")]

    def test_explicit_pair_replaces_bare_key(self):
        assert merge_params(["a"], ["a"], ["1"]) == [("a", "1")]

    def test_last_positional_wins(self):
        assert merge_params(["a=1", "a=2"], [], []) == [("a", "2")]

    def test_unbalanced(self):
        with pytest.raises(UnbalancedArguments) as excinfo:
            merge_params([], ["a", "b"], ["1"])
        assert isinstance(excinfo.value, InvalidArgument)
        assert str(excinfo.value) == "Invalid argument: got 2 key(s) but 1 value(s)"


class TestFormatListing:
    """Test the aligned key/value listing."""

    def test_padding_to_widest_key(self):
        assert format_listing([("a", "1"), ("long", "2"), ("flag", None)]) == ["a     1", "long  2", "flag"]

    def test_empty(self):
        assert format_listing([]) == []
