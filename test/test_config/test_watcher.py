import os
import threading
import time

import pytest

from archfolio.config.core.watcher import FileWatcher


def touch(path, offset):
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + offset))


@pytest.mark.unit
class TestPolling:

    def test_no_change_after_snapshot(self, tmp_path):
        path = tmp_path / "site.json"
        path.write_text("{}")
        watcher = FileWatcher([path], callback=lambda changed: None)
        watcher.snapshot()
        assert watcher.poll() == []

    def test_modified_file_reported_once(self, tmp_path):
        path = tmp_path / "site.json"
        path.write_text("{}")
        watcher = FileWatcher([str(path)], callback=lambda changed: None)
        watcher.snapshot()

        touch(path, 10)

        assert watcher.poll() == [path]
        assert watcher.poll() == []

    def test_created_and_deleted_files(self, tmp_path):
        created = tmp_path / "local.json"
        deleted = tmp_path / "dev.json"
        deleted.write_text("{}")
        watcher = FileWatcher([created, deleted], callback=lambda changed: None)
        watcher.snapshot()

        created.write_text("{}")
        deleted.unlink()

        assert watcher.poll() == [created, deleted]


@pytest.mark.integration
class TestWatcherThread:

    def test_callback_runs_on_change(self, tmp_path):
        path = tmp_path / "site.json"
        path.write_text("{}")
        seen = []
        fired = threading.Event()

        def callback(changed):
            seen.extend(changed)
            fired.set()

        watcher = FileWatcher([path], callback, interval=0.02)
        assert watcher.start() is True
        try:
            assert watcher.is_running()
            assert watcher.start() is False
            touch(path, 10)
            assert fired.wait(5)
        finally:
            assert watcher.stop() is True

        assert seen == [path]
        assert not watcher.is_running()

    def test_failing_callback_keeps_watching(self, tmp_path):
        path = tmp_path / "site.json"
        path.write_text("{}")
        calls = []
        second = threading.Event()

        def callback(changed):
            calls.append(changed)
            if len(calls) == 1:
                raise RuntimeError("reload failed")
            second.set()

        watcher = FileWatcher([path], callback, interval=0.02)
        watcher.start()
        try:
            touch(path, 10)
            for _ in range(250):
                if calls:
                    break
                time.sleep(0.02)
            touch(path, 20)
            assert second.wait(5)
        finally:
            watcher.stop()

        assert len(calls) == 2

    def test_stop_when_not_running(self):
        assert FileWatcher([], lambda changed: None).stop() is True
