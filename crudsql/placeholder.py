"""
Placeholder dialects.

Statements are rendered with unnumbered ``?`` markers and then rewritten to
the positional syntax the target driver expects.
"""

from enum import Enum


class Placeholder(Enum):
    """Positional-parameter syntax used when rendering SQL."""

    QUESTION = "?"
    DOLLAR = "$"
    COLON = ":"
    AT_P = "@p"

    @classmethod
    def parse(cls, name: str) -> "Placeholder":
        """
        Resolve a dialect from a configuration string.

        Args:
            name: Member name (any case) or a paramstyle alias
                  (qmark, numeric, numeric_dollar, atp)

        Returns:
            Matching Placeholder

        Raises:
            ValueError: If the name is unknown
        """
        key = name.strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        for member in cls:
            if member.name.lower() == key:
                return member
        raise ValueError(f"Unknown placeholder dialect: {name!r}")

    def marker(self, position: int) -> str:
        """Return the marker for a 1-based argument position."""
        if self is Placeholder.QUESTION:
            return "?"
        return f"{self.value}{position}"

    def replace(self, sql: str) -> str:
        """
        Rewrite ``?`` markers in ``sql`` to this dialect.

        Markers inside quoted identifiers or string literals are left alone,
        and ``??`` is an escaped literal question mark. QUESTION returns
        the text unchanged.
        """
        if self is Placeholder.QUESTION:
            return sql
        out = []
        position = 0
        quote = None
        i = 0
        while i < len(sql):
            ch = sql[i]
            if quote is not None:
                out.append(ch)
                if ch == quote:
                    quote = None
            elif ch in ("'", '"'):
                quote = ch
                out.append(ch)
            elif ch == "?":
                if i + 1 < len(sql) and sql[i + 1] == "?":
                    out.append("?")
                    i += 1
                else:
                    position += 1
                    out.append(self.marker(position))
            else:
                out.append(ch)
            i += 1
        return "".join(out)


_ALIASES = {
    "qmark": Placeholder.QUESTION,
    "numeric": Placeholder.COLON,
    "numeric_dollar": Placeholder.DOLLAR,
    "dollar": Placeholder.DOLLAR,
    "colon": Placeholder.COLON,
    "atp": Placeholder.AT_P,
    "at_p": Placeholder.AT_P,
}
