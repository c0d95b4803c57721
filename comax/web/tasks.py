"""
Asynchronous task helpers for long-running background jobs (translate-missing batches).
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from comax import config
from comax.core.session import Session
from comax.logger import get_logger
from comax.translation.batch import BatchProgress, translate_missing
from comax.translation.providers import TranslationProvider, get_provider

logger = get_logger(__name__)


@dataclass
class JobState:
    """In-memory representation of an asynchronous job."""

    job_id: str
    username: str
    target_cultures: List[str] = field(default_factory=list)
    cancel_requested: bool = False
    state: str = "pending"  # pending|running|completed|failed|cancelled
    created_at: float = field(default_factory=time.time)
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    progress: Dict[str, Any] = field(default_factory=dict)
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    last_update: float = field(default_factory=time.time)

    def request_cancel(self):
        """Mark this job as requested for cancellation."""
        self.cancel_requested = True
        self.last_update = time.time()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_jobs: Dict[str, JobState] = {}
_jobs_lock = threading.Lock()
_JOB_RETENTION_SECONDS = 600  # Retain job info for 10 minutes after completion


def create_translation_job(
    session: Session,
    target_cultures: List[str],
    provider: Optional[TranslationProvider] = None,
    run_async: bool = True,
) -> JobState:
    """
    Create and launch a translate-missing job.

    Args:
        session: Acting user; writes are audited under this session.
        target_cultures: Culture codes to fill from the source culture.
        provider: Provider override; defaults to the configured one.
        run_async: Run in a daemon thread (False runs inline, for tests and CLI use).

    Returns:
        JobState for the new job (already registered).
    """
    job_id = uuid.uuid4().hex
    job_state = JobState(job_id=job_id, username=session.username, target_cultures=list(target_cultures))

    with _jobs_lock:
        _cleanup_jobs_locked()
        _jobs[job_id] = job_state

    if not run_async:
        _run_translation_job(job_state, session, provider)
        return job_state

    thread = threading.Thread(
        target=_run_translation_job,
        args=(job_state, session, provider),
        name=f"translation-job-{job_id}",
        daemon=True,
    )
    thread.start()
    logger.info(
        "Translation job %s started by %s (targets=%s)",
        job_id,
        session.username,
        ", ".join(job_state.target_cultures),
    )
    return job_state


def get_job(job_id: str) -> Optional[JobState]:
    """Fetch a job by ID (if still retained)."""
    with _jobs_lock:
        job = _jobs.get(job_id)
        if job and job.finished_at and (time.time() - job.finished_at) > _JOB_RETENTION_SECONDS:
            _jobs.pop(job_id, None)
            return None
        return job


def cancel_job(job_id: str) -> bool:
    """
    Request cancellation of a running job.

    Returns:
        True if job was found and cancellation requested, False otherwise.
    """
    with _jobs_lock:
        job = _jobs.get(job_id)
        if not job or job.state in ("completed", "failed", "cancelled"):
            return False
        job.request_cancel()
        logger.info("Cancellation requested for job %s", job_id)
        return True


def serialize_job(job: JobState) -> Dict[str, Any]:
    """Convert JobState into JSON-safe dict."""
    with _jobs_lock:
        return job.to_dict()


def _run_translation_job(job: JobState, session: Session, provider: Optional[TranslationProvider]):
    """Worker function executed in a background thread."""
    job.state = "running"
    job.started_at = time.time()
    job.last_update = job.started_at
    try:
        app_config = config.load_config()
        translation_config = app_config.get("translation", {})
        provider = provider or get_provider(translation_config)

        def on_progress(progress: BatchProgress):
            with _jobs_lock:
                job.progress = progress.to_dict()
                job.last_update = time.time()
                return job.cancel_requested

        def check_cancel():
            with _jobs_lock:
                return job.cancel_requested

        result = translate_missing(
            job.target_cultures,
            session,
            provider,
            delay_seconds=float(translation_config.get("delay_seconds", 0.1)),
            source_culture=app_config.get("source_culture", "he-IL"),
            progress_callback=on_progress,
            cancel_check=check_cancel,
        )

        job.result = result.to_dict()
        if result.cancelled:
            job.state = "cancelled"
        else:
            job.state = "completed" if result.success else "failed"
        job.finished_at = time.time()
        job.last_update = job.finished_at
        logger.info(
            "Translation job %s finished (state=%s, translated=%s, errors=%s)",
            job.job_id,
            job.state,
            result.translated,
            result.errors,
        )
    except Exception as exc:
        job.state = "failed"
        job.error = f"{type(exc).__name__}: {exc}"
        job.finished_at = time.time()
        job.last_update = job.finished_at
        logger.exception("Translation job %s failed: %s", job.job_id, job.error)


def _cleanup_jobs_locked():
    """Remove finished jobs that exceeded retention period (call with lock held)."""
    now = time.time()
    expired = [
        job_id
        for job_id, job in _jobs.items()
        if job.finished_at and (now - job.finished_at) > _JOB_RETENTION_SECONDS
    ]
    for job_id in expired:
        _jobs.pop(job_id, None)
