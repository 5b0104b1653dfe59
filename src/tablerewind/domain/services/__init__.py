"""Domain services for tablerewind.

Services contain the classification and bookkeeping logic. They do not
touch drivers or patch any classes.
"""

from tablerewind.domain.services.statement_classifier import (
    StatementClassifier,
    classify_insert,
    default_classifier,
    statement_text,
)
from tablerewind.domain.services.table_recorder import RecordingRegistry, TableRecorder

__all__ = [
    "RecordingRegistry",
    "StatementClassifier",
    "TableRecorder",
    "classify_insert",
    "default_classifier",
    "statement_text",
]
