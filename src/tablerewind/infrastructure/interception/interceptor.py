"""Insert interceptor.

The classify-and-record step that every installed wrapper runs before
delegating to the original driver method.
"""

from contextvars import ContextVar, Token
from typing import Any, Optional

from tablerewind.core.logging import get_logger
from tablerewind.domain.services.statement_classifier import StatementClassifier
from tablerewind.domain.services.table_recorder import RecordingRegistry

logger = get_logger(__name__)

# (connection, statement) pairs currently inside an installed wrapper.
_active_interceptions: ContextVar[tuple[tuple[Any, Any], ...]] = ContextVar(
    "tablerewind_active_interceptions", default=()
)


class InsertInterceptor:
    """Classifies intercepted statements and records inserted tables.

    A wrapped override in a subtype that calls super() into a wrapped
    ancestor passes the same connection and statement object through two
    wrappers. Only the outermost one classifies.
    """

    def __init__(
        self,
        registry: RecordingRegistry,
        classifier: Optional[StatementClassifier] = None,
        record_schema: bool = False,
    ) -> None:
        """Initialize the interceptor.

        Args:
            registry: Where inserted tables are recorded.
            classifier: Statement classifier (defaults to a splitting one).
            record_schema: Record schema-qualified names instead of bare tables.
        """
        self.registry = registry
        self.classifier = classifier or StatementClassifier()
        self.record_schema = record_schema

    def enter(self, connection: Any, statement: Any) -> Optional[Token]:
        """Record the statement's target tables and mark it as in flight.

        Never raises. Returns a token to pass to exit(), or None when there
        was nothing to mark.
        """
        if statement is None:
            return None

        active = _active_interceptions.get()
        for active_connection, active_statement in active:
            if active_connection is connection and active_statement is statement:
                return None

        try:
            for target in self.classifier.classify_all(statement):
                self.registry.record(
                    connection,
                    target.qualified_name if self.record_schema else target.table,
                )
        except Exception:
            logger.warning(
                "Insert recording failed",
                connection_type=type(connection).__name__,
                exc_info=True,
            )

        return _active_interceptions.set(active + ((connection, statement),))

    @staticmethod
    def exit(token: Optional[Token]) -> None:
        """Unmark the statement marked by enter()."""
        if token is not None:
            _active_interceptions.reset(token)
