"""Tests for quoted argument splitting."""

from intentwire.tokenizer import normalize_quotes, split_args


def test_single_word():
    assert split_args("hello") == ["hello"]


def test_empty_input():
    assert split_args("") == []
    assert split_args("   ") == []


def test_double_quoted_span():
    assert split_args('foo "bar baz" qux') == ["foo", "bar baz", "qux"]


def test_single_quoted_span():
    assert split_args("add 'new york' now") == ["add", "new york", "now"]


def test_single_quoted_word():
    assert split_args('say "hi" there') == ["say", "hi", "there"]


def test_surrounding_whitespace_trimmed():
    assert split_args("  a b  ") == ["a", "b"]


def test_unterminated_quote_becomes_trailing_argument():
    """An open quote swallows the rest of the line instead of raising."""
    assert split_args('foo "bar baz') == ["foo", "bar baz"]


def test_apostrophe_inside_quoted_span():
    assert split_args("foo 'it's fine'") == ["foo", "it's fine"]


def test_apostrophe_opening_unterminated_span():
    assert split_args("note 'it is fine") == ["note", "it is fine"]


def test_mismatched_quote_does_not_close():
    assert split_args("""x "a b' c""") == ["x", "a b' c"]


def test_typographic_quotes_normalized():
    assert split_args("“big deal” ‘yes sir’") == ["big deal", "yes sir"]
    assert normalize_quotes("‘a’ “b”") == "'a' \"b\""


def test_lone_quote_opens_and_closes_itself():
    assert split_args('a " b') == ["a", "", "b"]


def test_double_space_gives_empty_argument():
    assert split_args("a  b") == ["a", "", "b"]


def test_double_space_inside_quotes_preserved():
    assert split_args('"a  b"') == ["a  b"]
