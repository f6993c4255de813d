"""Error taxonomy for the layout search.

Every failure is detected after the corresponding operation completes, is
never retried, and aborts the whole batch: callers never see partial results.
"""

from __future__ import annotations


class LayoutSearchError(RuntimeError):
    """Base class for all search failures."""


class AllocationFailure(LayoutSearchError):
    """The device could not reserve the requested memory."""


class TransferFailure(LayoutSearchError):
    """A host <-> device copy failed."""


class LaunchFailure(LayoutSearchError):
    """The requested grid shape or per-block working memory is not launchable."""


class ExecutionFailure(LayoutSearchError):
    """A fault occurred while the chains were running."""


def classify_runtime_error(exc: BaseException, stage: type[LayoutSearchError], what: str) -> LayoutSearchError:
    """Map a runtime error raised by the device backend onto the taxonomy.

    Out-of-memory conditions are reported by XLA as `RESOURCE_EXHAUSTED` no
    matter which stage triggered them; everything else is attributed to `stage`.
    """
    message = str(exc).strip().splitlines()[0] if str(exc).strip() else type(exc).__name__
    if "RESOURCE_EXHAUSTED" in str(exc) or "out of memory" in str(exc).lower():
        return AllocationFailure(f"{what}: {message}")
    return stage(f"{what}: {message}")
