"""File watcher with debounce that triggers regeneration on descriptor changes."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# Directory names never worth reacting to
_IGNORE_PARTS = {".git", "__pycache__", ".typegen"}


def _should_ignore(path: str, ignore_roots: tuple[Path, ...]) -> bool:
    """True if the path has an ignored component or lies under an ignored root."""
    p = Path(path)
    if any(part in _IGNORE_PARTS for part in p.parts):
        return True
    return any(p.is_relative_to(root) for root in ignore_roots)


class _DebouncedHandler(FileSystemEventHandler):
    """Drops repeat events for the same path inside the debounce window."""

    def __init__(
        self,
        debounce_seconds: float,
        changed: set[str],
        lock: threading.Lock,
        ignore_roots: tuple[Path, ...] = (),
        callback: Callable[[str, str], None] | None = None,
    ) -> None:
        super().__init__()
        self._debounce = debounce_seconds
        self._changed = changed
        self._lock = lock
        self._ignore_roots = ignore_roots
        self._callback = callback
        self._last_event: dict[str, float] = {}

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        src = str(event.src_path)
        if _should_ignore(src, self._ignore_roots):
            return

        now = time.time()
        last = self._last_event.get(src, 0)
        if now - last < self._debounce:
            return
        self._last_event[src] = now

        with self._lock:
            self._changed.add(src)

        if self._callback is not None:
            try:
                self._callback(event.event_type, src)
            except Exception:
                logger.exception("Watcher callback failed for %s", src)


class DescriptorWatcher:
    """Watches descriptor and resource directories for changes.

    Each directory in *paths* that exists is watched recursively. Events
    under *ignore* (typically the generated-sources directory) are
    dropped so that regeneration does not retrigger itself.
    """

    def __init__(
        self,
        paths: Iterable[Path],
        debounce_seconds: float = 1.0,
        callback: Callable[[str, str], None] | None = None,
        ignore: Iterable[Path] = (),
    ) -> None:
        self._paths = sorted({Path(p).resolve() for p in paths})
        self._lock = threading.Lock()
        self._changed: set[str] = set()
        self._observer: Observer | None = None
        self._handler = _DebouncedHandler(
            debounce_seconds=debounce_seconds,
            changed=self._changed,
            lock=self._lock,
            ignore_roots=tuple(Path(p).resolve() for p in ignore),
            callback=callback,
        )

    @property
    def changed_paths(self) -> set[str]:
        """Absolute paths seen changing since the last clear()."""
        with self._lock:
            return set(self._changed)

    @property
    def watched(self) -> list[Path]:
        return [p for p in self._paths if p.is_dir()]

    def start(self) -> None:
        """Begin watching every existing directory."""
        if self._observer is not None:
            return
        self._observer = Observer()
        for path in self.watched:
            self._observer.schedule(self._handler, str(path), recursive=True)
            logger.info("Watching %s for changes", path)
        self._observer.start()

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("Stopped watching")

    def clear(self) -> None:
        with self._lock:
            self._changed.clear()
