"""Builder for Drive API ``q`` filter strings.

Conditions accumulate in call order and are joined with ``and``. Every
condition that embeds a caller-supplied literal escapes it first.
"""


def escape_literal(value: str) -> str:
    """Escape a string for use inside a single-quoted query literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveQueryBuilder:
    """Compose Drive search conditions.

    Example:
        ```python
        q = DriveQueryBuilder().in_parents("root").name_equals("Reports").not_trashed().build()
        # "'root' in parents and name = 'Reports' and trashed = false"
        ```
    """

    def __init__(self) -> None:
        self._conditions: list[str] = []

    @classmethod
    def create(cls) -> "DriveQueryBuilder":
        return cls()

    def in_parents(self, parent_id: str) -> "DriveQueryBuilder":
        self._conditions.append(f"'{escape_literal(parent_id)}' in parents")
        return self

    def name_equals(self, name: str) -> "DriveQueryBuilder":
        self._conditions.append(f"name = '{escape_literal(name)}'")
        return self

    def name_contains(self, text: str) -> "DriveQueryBuilder":
        self._conditions.append(f"name contains '{escape_literal(text)}'")
        return self

    def full_text_contains(self, text: str) -> "DriveQueryBuilder":
        self._conditions.append(f"fullText contains '{escape_literal(text)}'")
        return self

    def name_or_full_text_contains(self, text: str) -> "DriveQueryBuilder":
        """Match ``text`` in either the name or the indexed content."""
        literal = escape_literal(text)
        self._conditions.append(f"(name contains '{literal}' or fullText contains '{literal}')")
        return self

    def mime_type_equals(self, mime_type: str) -> "DriveQueryBuilder":
        self._conditions.append(f"mimeType = '{escape_literal(mime_type)}'")
        return self

    def mime_type_contains(self, mime_type: str) -> "DriveQueryBuilder":
        self._conditions.append(f"mimeType contains '{escape_literal(mime_type)}'")
        return self

    def modified_after(self, timestamp: str) -> "DriveQueryBuilder":
        """Restrict to items modified after an RFC 3339 timestamp."""
        self._conditions.append(f"modifiedTime > '{escape_literal(timestamp)}'")
        return self

    def not_trashed(self) -> "DriveQueryBuilder":
        self._conditions.append("trashed = false")
        return self

    def only_trashed(self) -> "DriveQueryBuilder":
        self._conditions.append("trashed = true")
        return self

    def custom(self, condition: str) -> "DriveQueryBuilder":
        """Append a raw condition verbatim. The caller is responsible for escaping."""
        self._conditions.append(condition)
        return self

    def build(self) -> str:
        """Join all conditions. An empty builder yields ``""`` (no filter)."""
        return " and ".join(self._conditions)
