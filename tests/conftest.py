"""Shared test fixtures."""

import pytest

from tablerewind.core.hooks.hook_registry import HookRegistry
from tablerewind.domain.services.statement_classifier import StatementClassifier
from tablerewind.domain.services.table_recorder import RecordingRegistry
from tablerewind.infrastructure.interception.interceptor import InsertInterceptor
from tablerewind.infrastructure.interception.signature_adapter import SignatureAdapter


@pytest.fixture
def hooks() -> HookRegistry:
    """A fresh hook registry, isolated from the process-wide one."""
    return HookRegistry()


@pytest.fixture
def recordings(hooks: HookRegistry) -> RecordingRegistry:
    """Recording registry notifying the test's hook registry."""
    return RecordingRegistry(hooks)


@pytest.fixture
def classifier() -> StatementClassifier:
    return StatementClassifier()


@pytest.fixture
def interceptor(recordings: RecordingRegistry, classifier: StatementClassifier) -> InsertInterceptor:
    return InsertInterceptor(recordings, classifier)


@pytest.fixture
def adapter(interceptor: InsertInterceptor) -> SignatureAdapter:
    return SignatureAdapter(interceptor)
