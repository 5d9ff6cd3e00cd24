"""Human-readable differences between two versions of an article.

Used for conflict dialogs (local edit vs. concurrent server edit) and for
reviewing local changes before going back online.
"""

from typing import List, Optional

from src.models.article import Article, EDITABLE_FIELDS
from src.sync.models import FieldDifference

FORMATTING_NOTE = "formatting also changed"


class DiffReporter:
    """Describes field-level differences between local and server articles.

    All methods are pure.

    Example:
        >>> reporter = DiffReporter()
        >>> print(reporter.describe(local, server, is_new_local=False))
        Changes for article #3 (Cable):
          - stock: 3 -> 5
    """

    def field_differences(self, local: Article, server: Article) -> List[FieldDifference]:
        """List differing editable fields in display order."""
        differences = []
        for field_name in EDITABLE_FIELDS:
            server_value = getattr(server, field_name)
            local_value = getattr(local, field_name)
            if server_value != local_value:
                differences.append(
                    FieldDifference(
                        field_name=field_name,
                        server_value=server_value,
                        local_value=local_value,
                    )
                )
        return differences

    def styles_differ(self, local: Article, server: Article) -> bool:
        return local.styles_json() != server.styles_json()

    def describe(
        self,
        local: Article,
        server: Optional[Article],
        is_new_local: bool = False,
    ) -> str:
        """Describe how the local version differs from the server version.

        Args:
            local: Local version of the article
            server: Server version, or None if the server no longer has it
            is_new_local: The article was created locally and never pushed

        Returns:
            Multi-line description; field lines read ``field: server -> local``
        """
        if is_new_local:
            return f"New local article: {local.name}"

        if server is None:
            return f"Deleted on server: {local.name}"

        lines = [f"Changes for article #{local.id} ({local.name}):"]
        for difference in self.field_differences(local, server):
            lines.append(
                f"  - {difference.field_name}: "
                f"{difference.server_value} -> {difference.local_value}"
            )
        if self.styles_differ(local, server):
            lines.append(f"  - {FORMATTING_NOTE}")
        return "\n".join(lines)
