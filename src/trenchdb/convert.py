import re
from typing import Iterator, Tuple

from trenchdb.exception import TrenchError

# Quoted literals and identifiers are matched first and left untouched.
TOKEN = re.compile(
    r"(?P<quoted>'(?:[^'\\]|\\.|'')*'"
    r"|\"(?:[^\"\\]|\\.|\"\")*\""
    r"|`(?:[^`]|``)*`)"
    r"|(?P<qmark>\?)"
    r"|(?P<dollar>\$\d+)"
    r"|(?P<keyword>\$[a-z][a-z0-9_]*)"
    r"|(?P<format>%s)"
    r"|(?P<percent>%)",
    re.DOTALL,
)


def _tokens(query: str) -> Iterator[Tuple[str, re.Match]]:
    for match in TOKEN.finditer(query):
        yield match.lastgroup or "", match


def convert_placeholders(
    query: str, positional_sub: str = "%s", escape_percent: bool = False
) -> str:
    """Rewrite ``?`` and ``$n`` placeholders into the driver's style

    Placeholders inside quoted literals and backtick identifiers are not
    placeholders and are kept as written. With ``escape_percent`` every
    other ``%`` is doubled, as the driver formats the query with ``%``
    when values are bound.
    """
    styles = set()
    parts = []
    position = 0
    for kind, match in _tokens(query):
        parts.append(query[position : match.start()])
        position = match.end()
        text = match.group()
        if kind == "keyword":
            raise TrenchError(
                "Keyword parameters are not supported, bind values by "
                "position"
            )
        if kind in ("qmark", "dollar"):
            styles.add(kind)
            text = positional_sub
        elif kind == "format":
            styles.add(kind)
        elif escape_percent:
            text = text.replace("%", "%%")
        parts.append(text)
    parts.append(query[position:])
    if len(styles) > 1:
        raise TrenchError(
            f"Could not properly convert SQL params {len(styles)}"
        )
    return "".join(parts)


def count_placeholders(fragment: str) -> int:
    return sum(
        1
        for kind, _ in _tokens(fragment)
        if kind in ("qmark", "dollar", "format")
    )
