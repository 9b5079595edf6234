"""
    Shared behaviour of the category and location tree editors
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional
from config import setup_logging
from providers.provider_interfaces import DocumentStore, StoreError
from services.live_view import LiveViewSynchronizer
from services.referential_guard import ReferentialGuard
from taxonomy_errors import EditorBusy, OperationFailed, ValidationError


setup_logging()
logger = logging.getLogger(__name__)

class TaxonomyEditor:
    """Base editor: live view, referential guard, single in-flight mutation"""

    collection: str = ''

    def __init__(self, store: DocumentStore, guard: Optional[ReferentialGuard] = None,
                 on_error: Optional[Callable[[Exception], None]] = None):
        self.store = store
        self.guard = guard or ReferentialGuard(store)
        self.live_view = LiveViewSynchronizer(store, self.collection, self.reducer, on_error=on_error)
        self.is_submitting = False

    @staticmethod
    def reducer(documents):
        raise NotImplementedError

    def start(self):
        self.live_view.start()
        return self

    def stop(self) -> None:
        self.live_view.stop()

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    @contextmanager
    def _submitting(self) -> Iterator[None]:
        if self.is_submitting:
            raise EditorBusy("Another change is still being saved. Please wait.")

        self.is_submitting = True
        try:
            yield
        finally:
            self.is_submitting = False

    @staticmethod
    def _require_name(name: Optional[str], label: str) -> str:
        cleaned = (name or '').strip()
        if not cleaned:
            raise ValidationError(f"{label} name cannot be empty.")
        return cleaned

    @staticmethod
    def _optional_text(value: Optional[str]) -> Optional[str]:
        return (value or '').strip() or None

    def _store_call(self, description: str, operation: Callable[..., Any], *args: Any) -> Any:
        """Run one store operation, reporting failures as OperationFailed"""
        try:
            return operation(*args)

        except StoreError as e:
            logger.error(f"Error trying to {description}: {e}", exc_info=True)
            raise OperationFailed(f"Could not {description}.") from e
