"""Domain entities for tablerewind.

Entities are pure Python dataclasses with no dependencies on
infrastructure or external frameworks.
"""

from tablerewind.domain.entities.hook_result import HookResult
from tablerewind.domain.entities.insert_target import InsertTarget

__all__ = [
    "HookResult",
    "InsertTarget",
]
