"""SQL helpers for user-supplied search terms."""


def escape_like_pattern(pattern: str, escape_char: str = "\\") -> str:
    """Escape LIKE wildcards so a search term matches literally.

    Pass the same ``escape_char`` as the ``escape`` argument of ``ilike``;
    a search for ``"%"`` then matches a literal percent sign instead of
    every row.
    """
    if not pattern:
        return pattern

    # Escape the escape character first to avoid double-escaping
    pattern = pattern.replace(escape_char, escape_char + escape_char)
    pattern = pattern.replace("%", escape_char + "%")
    pattern = pattern.replace("_", escape_char + "_")
    return pattern
