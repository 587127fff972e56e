"""Parsing of source id lists given on the command line.

An id list holds one or more source id tuples separated by commas; the
components of a multi-column id are separated by colons. Double quotes
protect a component containing either separator::

    5                -> [["5"]]
    1:2,2:3          -> [["1", "2"], ["2", "3"]]
    1:"r:1",2:"r:3"  -> [["1", "r:1"], ["2", "r:3"]]
"""


def _split_unquoted(text: str, separator: str) -> list[str]:
    """Split on a separator that is not inside double quotes, keeping the quotes."""
    parts = []
    current = []
    in_quotes = False
    for char in text:
        if char == '"':
            in_quotes = not in_quotes
        if char == separator and not in_quotes:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def _unquote(component: str) -> str:
    component = component.strip()
    if len(component) >= 2 and component[0] == component[-1] == '"':
        return component[1:-1]
    return component


def parse_id_list(id_list: str | None) -> list[list[str]]:
    """Parse a comma separated list of colon separated source ids.

    Args:
        id_list: Raw id list, e.g. ``1:2,2:3``

    Returns:
        One list of string components per id, in input order. Empty or
        blank input yields an empty list.
    """
    if not id_list or not id_list.strip():
        return []

    parsed = []
    for row in _split_unquoted(id_list, ","):
        if not row.strip():
            continue
        parsed.append([_unquote(component) for component in _split_unquoted(row, ":")])
    return parsed
