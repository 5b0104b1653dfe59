"""Insert target entity."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class InsertTarget:
    """The table an insertion statement writes to.

    Identifier parts keep their own spelling: quotes and brackets are
    stripped, case is not folded.

    Attributes:
        table: The table name.
        schema: The qualifying schema (or database) name, if any.
    """

    table: str
    schema: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        """Schema-qualified name, or the bare table name when unqualified."""
        if self.schema:
            return f"{self.schema}.{self.table}"
        return self.table
