"""Hook result for the hook system."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class HookResult:
    """Result of a hook trigger operation.

    Attributes:
        success: Whether all hooks executed successfully.
        errors: List of error messages from hooks that failed.
        data: Data passed to (and possibly replaced by) the hook chain.
    """

    success: bool = True
    errors: list[str] = field(default_factory=list)
    data: Optional[dict[str, Any]] = None
