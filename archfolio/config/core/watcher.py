"""
File watching for hot reload.

A daemon thread polls the modification times of a set of files and calls back
with the paths that changed since the previous poll.
"""

import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from archfolio.logger import get_archfolio_logger


class FileWatcher:
    """
    Poll-based file watcher.

    Parameters
    ----------
    paths : iterable of str or Path
        Files to watch; they do not need to exist yet
    callback : callable
        Called with the list of changed paths
    interval : float
        Seconds between polls
    """

    def __init__(self, paths: Iterable, callback: Callable[[List[Path]], None], interval: float = 1.0):
        self.paths = [Path(path) for path in paths]
        self.callback = callback
        self.interval = interval
        self.logger = get_archfolio_logger().bind(component="FileWatcher")

        self._mtimes: Dict[Path, Optional[float]] = {}
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False

    @staticmethod
    def _mtime(path: Path) -> Optional[float]:
        try:
            return path.stat().st_mtime
        except OSError:
            return None

    def snapshot(self):
        """Record the current modification times as the baseline."""
        self._mtimes = {path: self._mtime(path) for path in self.paths}

    def poll(self) -> List[Path]:
        """Compare against the baseline, update it and return the changed paths."""
        changed = []
        for path in self.paths:
            current = self._mtime(path)
            if current != self._mtimes.get(path):
                changed.append(path)
                self._mtimes[path] = current
        return changed

    def _watch_loop(self):
        self.logger.debug("File watcher loop started", files=len(self.paths))
        while not self._stop_event.wait(self.interval):
            changed = self.poll()
            if not changed:
                continue
            self.logger.info("Watched files changed", files=[str(path) for path in changed])
            try:
                self.callback(changed)
            except Exception as e:
                self.logger.error("File watcher callback failed", error=str(e))
        self.logger.debug("File watcher loop stopped")

    def start(self) -> bool:
        if self._running:
            self.logger.warning("File watcher is already running")
            return False

        self.snapshot()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name='Archfolio-FileWatcher',
            daemon=True
        )
        self._running = True
        self._thread.start()
        self.logger.info("File watcher started", files=[str(path) for path in self.paths], interval=self.interval)
        return True

    def stop(self, timeout: float = 5.0) -> bool:
        if not self._running:
            return True

        self._stop_event.set()
        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                self.logger.warning(f"File watcher did not stop within {timeout} seconds")
                return False

        self._running = False
        self._thread = None
        self.logger.info("File watcher stopped")
        return True

    def is_running(self) -> bool:
        return self._running and self._thread is not None and self._thread.is_alive()
