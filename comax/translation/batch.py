"""
Translate-missing batch.

Walks every source-culture (he-IL) resource and, for each target culture,
machine-translates the source value where the target translation is
missing or blank. Requests are spaced by a fixed delay to stay under the
provider's rate limit. Per-item failures are counted and collected; they
never abort the batch.
"""

import time
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Dict, Iterable, List, Optional

from comax import cultures
from comax.core import audit
from comax.core import database as db
from comax.core.exceptions import ComaxError, StoreError, TranslationError
from comax.core.session import Session
from comax.grid.aggregator import fetch_all_records
from comax.logger import get_logger
from comax.translation.providers import TranslationProvider

logger = get_logger(__name__)


@dataclass
class BatchProgress:
    """Progress information for a running translate-missing batch."""
    current_item: int = 0
    total_items: int = 0
    current_key: str = ""
    current_culture: str = ""
    translated: int = 0
    skipped: int = 0
    errors: int = 0
    phase: str = "translating"       # "translating", "completed", "cancelled"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BatchResult:
    success: bool
    translated: int = 0
    skipped: int = 0
    errors: int = 0
    error_messages: List[str] = field(default_factory=list)
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _save_translation(source: Any, target_culture: str, text: str,
                      existing: Optional[Dict[str, Any]], session: Session) -> None:
    if existing:
        updated = db.update_resource_value(existing["id"], text)
        audit.record(
            session, "UPDATE", audit.RESOURCES_TABLE,
            record_id=updated["id"],
            old_value={"resource_value": existing.get("resource_value") or ""},
            new_value={"resource_value": text},
            description=f"Machine translation {source.resource_key} ({target_culture})",
        )
    else:
        created = db.insert_resource(
            source.resource_type, target_culture, source.resource_key, text,
            organization_id=session.organization_id,
        )
        audit.record(
            session, "CREATE", audit.RESOURCES_TABLE,
            record_id=created["id"],
            new_value={"resource_value": text},
            description=f"Machine translation {source.resource_key} ({target_culture})",
        )


def translate_missing(target_cultures: Iterable[str], session: Session,
                      provider: TranslationProvider,
                      delay_seconds: float = 0.1,
                      source_culture: str = cultures.SOURCE_CULTURE,
                      progress_callback: Optional[Callable[[BatchProgress], Any]] = None,
                      cancel_check: Optional[Callable[[], bool]] = None,
                      sleep: Callable[[float], None] = time.sleep) -> BatchResult:
    """
    Fill missing or blank target translations from the source culture.

    Args:
        target_cultures: Culture codes to translate into
        session: Acting user, recorded in the audit trail
        provider: Machine translation provider
        delay_seconds: Pause after every provider request
        progress_callback: Called with a BatchProgress after each item;
            returning True requests cancellation
        cancel_check: Polled before each item; True stops the batch

    Returns:
        BatchResult with translated/skipped/errors counts and error messages
    """
    targets = [cultures.validate_culture_code(code) for code in target_cultures]
    targets = [code for code in targets if code != source_culture]

    try:
        sources = fetch_all_records(culture_code=source_culture)
    except StoreError as e:
        logger.error(f"Failed to fetch {source_culture} resources: {e}")
        return BatchResult(success=False, error_messages=[str(e)])

    if not sources:
        return BatchResult(success=False, error_messages=[f"No {source_culture} translations found"])

    result = BatchResult(success=True)
    progress = BatchProgress(total_items=len(sources) * len(targets))
    logger.info(
        f"Translate-missing batch: {len(sources)} source records -> {', '.join(targets) or 'no targets'}"
    )

    for source in sources:
        for target in targets:
            if cancel_check and cancel_check():
                result.cancelled = True
                progress.phase = "cancelled"
                logger.info("Translate-missing batch cancelled")
                return _finish(result, progress, progress_callback)

            progress.current_item += 1
            progress.current_key = source.resource_key
            progress.current_culture = target

            try:
                existing = db.find_resource(source.resource_type, target, source.resource_key)
            except StoreError as e:
                result.errors += 1
                result.error_messages.append(f"Failed to look up {source.resource_key} in {target}: {e}")
                continue

            if existing and (existing.get("resource_value") or "").strip():
                result.skipped += 1
                _report(progress, result, progress_callback)
                continue

            try:
                text = provider.translate(source.resource_value, target, source_culture=source_culture)
            except TranslationError as e:
                result.errors += 1
                result.error_messages.append(f"Failed to translate {source.resource_key} to {target}: {e}")
            else:
                try:
                    _save_translation(source, target, text, existing, session)
                    result.translated += 1
                except ComaxError as e:
                    result.errors += 1
                    result.error_messages.append(
                        f"Failed to save translation for {source.resource_key} to {target}: {e}"
                    )

            if _report(progress, result, progress_callback):
                result.cancelled = True
                progress.phase = "cancelled"
                return _finish(result, progress, progress_callback)

            if delay_seconds:
                sleep(delay_seconds)

    progress.phase = "completed"
    return _finish(result, progress, progress_callback)


def _report(progress: BatchProgress, result: BatchResult,
            progress_callback: Optional[Callable[[BatchProgress], Any]]) -> bool:
    progress.translated = result.translated
    progress.skipped = result.skipped
    progress.errors = result.errors
    if progress_callback:
        return bool(progress_callback(progress))
    return False


def _finish(result: BatchResult, progress: BatchProgress,
            progress_callback: Optional[Callable[[BatchProgress], Any]]) -> BatchResult:
    result.success = result.errors == 0 and not result.cancelled
    _report(progress, result, progress_callback)
    logger.info(
        f"Translate-missing batch finished: translated={result.translated}, "
        f"skipped={result.skipped}, errors={result.errors}"
    )
    return result
