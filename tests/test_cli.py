"""
Tests for the urltool command line.
"""

import io

import pytest

from urltool.cli import main


def run(capsys, *argv):
    code = main(list(argv))
    return code, capsys.readouterr().out


class TestCommands:
    """Test each command's output on success."""

    def test_normalize(self, capsys):
        assert run(capsys, "normalize", "HTTP://Example.com:80") == (0, "http://example.com/\n")

    def test_resolve(self, capsys):
        code, out = run(capsys, "resolve", "--base", "https://example.com/a/b/", "../c?x=1")
        assert code == 0
        assert out == "https://example.com/a/c?x=1\n"

    def test_trim(self, capsys):
        assert run(capsys, "trim", "-n", "2", "https://example.com/a/b/c") == (0, "https://example.com/a\n")

    def test_set(self, capsys):
        code, out = run(capsys, "set", "--scheme", "https", "--host", "other.com", "http://example.com/p")
        assert code == 0
        assert out == "https://other.com/p\n"

    def test_query_listing(self, capsys):
        code, out = run(capsys, "query", "https://h/?a=1&bb=2&flag&a=3")
        assert code == 0
        assert out == "a     1\nbb    2\nflag\na     3\n"

    def test_query_select(self, capsys):
        code, out = run(capsys, "query", "-s", "a", "a=1&b=2&a=3")
        assert code == 0
        assert out == "1\n3\n"

    def test_query_string_with_question_mark(self, capsys):
        assert run(capsys, "query", "-s", "q", "?q=hello+world") == (0, "hello world\n")

    def test_query_url_without_query(self, capsys):
        assert run(capsys, "query", "https://h/") == (0, "")

    def test_encode(self, capsys):
        assert run(capsys, "encode", "q=hello world", "flag") == (0, "q=hello+world&flag\n")

    def test_encode_explicit_pair_wins(self, capsys):
        code, out = run(capsys, "encode", "a=1", "b=2", "-k", "a", "-v", "9")
        assert code == 0
        assert out == "a=9&b=2\n"

    def test_query_value_printed_verbatim(self, capsys):
        assert run(capsys, "query", "-s", "a", "a=x%09y") == (0, "x\ty\n")
        assert run(capsys, "query", "-s", "a", "a=x%07y") == (0, "x\x07y\n")

    def test_query_string_that_looks_like_a_url(self, capsys):
        assert run(capsys, "query", "-s", "a", "q:1=2&a=b") == (0, "b\n")

    def test_normalize_undecodable_argument(self, capsys):
        assert run(capsys, "normalize", "http://h/\udcff") == (0, "http://h/%FF\n")

    def test_format(self, capsys):
        assert run(capsys, "format", "$host:$port", "http://h:8080/") == (0, "h:8080\n")


class TestStdin:
    """Test reading the URL from standard input when it is left out."""

    def test_trim_from_stdin(self, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("https://example.com/a/b/c\n"))
        assert run(capsys, "trim", "-n", "1") == (0, "https://example.com/a/b\n")

    def test_resolve_base_from_stdin(self, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("https://example.com/a/b\n"))
        assert run(capsys, "resolve", "c") == (0, "https://example.com/a/c\n")

    def test_read_failure(self, capsys, monkeypatch):
        class BrokenStdin:
            def read(self):
                raise OSError("boom")

        monkeypatch.setattr("sys.stdin", BrokenStdin())
        code, out = run(capsys, "normalize")
        assert code == 1
        assert out == "*** I/O failure: could not read standard input: boom\n"


class TestErrors:
    """Test that failures print a single *** line and exit 1."""

    def test_syntax_error(self, capsys):
        code, out = run(capsys, "normalize", "not a url")
        assert code == 1
        assert out == "*** Syntax error: relative URL without a base: not a url\n"

    def test_no_path(self, capsys):
        code, out = run(capsys, "trim", "-n", "1", "mailto:x@example.com")
        assert code == 1
        assert out == "*** Invalid argument: URL has no path: mailto:x@example.com\n"

    def test_missing_authority(self, capsys):
        code, out = run(capsys, "resolve", "--base", "mailto:x@example.com", "y")
        assert code == 1
        assert out.startswith("*** Missing authority: ")

    def test_invalid_scheme(self, capsys):
        code, out = run(capsys, "set", "--scheme", "1x", "http://h/")
        assert code == 1
        assert out == "*** Invalid scheme: not a valid scheme: '1x'\n"

    def test_invalid_host(self, capsys):
        code, out = run(capsys, "set", "--host", "a/b", "http://h/")
        assert code == 1
        assert out.startswith("*** Invalid host: ")

    def test_unbalanced(self, capsys):
        code, out = run(capsys, "encode", "-k", "a")
        assert code == 1
        assert out == "*** Invalid argument: got 1 key(s) but 0 value(s)\n"

    def test_empty_bare_key(self, capsys):
        code, out = run(capsys, "encode", "")
        assert code == 1
        assert out == "*** Invalid argument: a parameter without a value needs a name\n"

    def test_file_url_scheme_change(self, capsys):
        code, out = run(capsys, "set", "--scheme", "http", "file:///tmp/x")
        assert code == 1
        assert out.startswith("*** Invalid scheme: ")

    def test_template_error(self, capsys):
        code, out = run(capsys, "format", "$nope", "http://h/")
        assert code == 1
        assert out.startswith("*** Template error: ")

    def test_missing_command(self):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 2
