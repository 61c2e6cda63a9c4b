"""Argument splitting for command text.

Splits on spaces like a shell would, except that quoting is forgiving:
an unterminated quote swallows the rest of the line instead of failing.
"""

from typing import List

_SINGLE_QUOTES = str.maketrans({"‘": "'", "’": "'"})
_DOUBLE_QUOTES = str.maketrans({"“": '"', "”": '"'})

QUOTE_CHARS = ("'", '"')


def normalize_quotes(text: str) -> str:
    """Replace typographic quotes (phone keyboards, macOS) with ASCII ones."""
    return text.translate(_SINGLE_QUOTES).translate(_DOUBLE_QUOTES)


def split_args(text: str) -> List[str]:
    """Split a line into arguments, keeping quoted spans together.

    >>> split_args('foo "bar baz" qux')
    ['foo', 'bar baz', 'qux']

    Args:
        text: Argument text, typically what follows a command trigger.

    Returns:
        Ordered list of arguments. Empty input gives an empty list.
    """
    text = normalize_quotes(text.strip())
    if not text:
        return []

    args: List[str] = []
    quote = None
    span: List[str] = []

    for token in text.split(" "):
        if quote is None:
            if token[:1] in QUOTE_CHARS:
                quote = token[0]
                # Single word in quotes. A lone quote char closes itself.
                if token[-1] == quote:
                    quote = None
                    args.append(token[1:-1])
                else:
                    span = [token[1:]]
            else:
                args.append(token)
        elif token[-1:] == quote:
            quote = None
            span.append(token[:-1])
            args.append(" ".join(span))
            span = []
        else:
            span.append(token)

    # Unterminated quote: keep what we have as a literal argument
    if span:
        args.append(" ".join(span))

    return args
