"""Tests for event listener module."""

import threading

from src.tailer.event_listener import EventListener
from src.tailer.exceptions import WatchLostError
from src.tailer.models import ChangeEvent, ChangeKind
from src.tailer.reconciler import Reconciler
from src.tailer.resolver import PathResolver
from src.tailer.watch_set import WatchSet


def make_listener(backend, *patterns):
    watch_set = WatchSet()
    listener = EventListener(PathResolver(patterns), watch_set, backend, wait_timeout=0.05)
    return listener, watch_set


class TestEventListener:
    """Tests for EventListener class."""

    def test_create_matching_file(self, root, backend):
        path = root / "new.log"
        path.write_bytes(b"before discovery")
        listener, watch_set = make_listener(backend, str(root / "*.log"))

        listener.handle_event(ChangeEvent(ChangeKind.CREATE, path))

        assert watch_set.get_offset(path) == len(b"before discovery")

    def test_create_non_matching_file_ignored(self, root, backend):
        path = root / "new.txt"
        path.write_bytes(b"x")
        listener, watch_set = make_listener(backend, str(root / "*.log"))

        listener.handle_event(ChangeEvent(ChangeKind.CREATE, path))

        assert len(watch_set) == 0

    def test_create_for_vanished_file_ignored(self, root, backend):
        listener, watch_set = make_listener(backend, str(root / "*.log"))

        listener.handle_event(ChangeEvent(ChangeKind.CREATE, root / "gone.log"))

        assert len(watch_set) == 0

    def test_create_does_not_reset_tracked_file(self, root, backend):
        path = root / "a.log"
        path.write_bytes(b"0123456789")
        listener, watch_set = make_listener(backend, str(root / "*.log"))
        watch_set.add_file_if_absent(path, 4)

        listener.handle_event(ChangeEvent(ChangeKind.CREATE, path))

        assert watch_set.get_offset(path) == 4

    def test_create_symlink_tracks_target(self, root, backend):
        target = root / "target.log"
        target.write_bytes(b"abc")
        link = root / "link.log"
        link.symlink_to(target)
        listener, watch_set = make_listener(backend, str(root / "*.log"))

        listener.handle_event(ChangeEvent(ChangeKind.CREATE, link))

        assert list(watch_set.file_paths()) == [target]

    def test_remove_event(self, root, backend):
        listener, watch_set = make_listener(backend, str(root / "*.log"))
        watch_set.add_file_if_absent(root / "a.log", 10)

        listener.handle_event(ChangeEvent(ChangeKind.REMOVE, root / "a.log"))

        assert root / "a.log" not in watch_set

    def test_rename_event(self, root, backend):
        listener, watch_set = make_listener(backend, str(root / "*.log"))
        watch_set.add_file_if_absent(root / "a.log", 10)

        listener.handle_event(ChangeEvent(ChangeKind.RENAME, root / "a.log"))

        assert root / "a.log" not in watch_set

    def test_remove_untracked_path(self, root, backend):
        listener, watch_set = make_listener(backend, str(root / "*.log"))

        listener.handle_event(ChangeEvent(ChangeKind.REMOVE, root / "other.log"))

        assert len(watch_set) == 0

    def test_run_until_closed(self, root, backend):
        path = root / "a.log"
        path.write_bytes(b"abc")
        listener, watch_set = make_listener(backend, str(root / "*.log"))

        backend.events.put(ChangeEvent(ChangeKind.CREATE, path))
        backend.close()
        listener.run()

        assert watch_set.get_offset(path) == 3

    def test_errors_are_logged_and_listening_continues(self, root, backend, caplog):
        path = root / "a.log"
        path.write_bytes(b"abc")
        listener, watch_set = make_listener(backend, str(root / "*.log"))

        backend.errors.put(OSError("inotify queue overflow"))
        backend.events.put(ChangeEvent(ChangeKind.CREATE, path))
        backend.close()
        listener.run()

        assert "inotify queue overflow" in caplog.text
        assert path in watch_set

    def test_lost_directory_marked_for_resubscription(self, root, backend):
        path = root / "a.log"
        path.write_bytes(b"abc")
        listener, watch_set = make_listener(backend, str(root / "*.log"))
        reconciler = Reconciler(listener.resolver, watch_set, backend)
        reconciler.reconcile()
        assert backend.subscribed == {root}

        backend.errors.put(WatchLostError(f"Watched directory was removed: {root}", root))
        assert listener.drain_errors() is True

        assert backend.unsubscribe_calls == [root]
        assert watch_set.get_dir(root).ok is False

        reconciler.reconcile()

        assert backend.subscribe_calls == [root, root]
        assert backend.subscribed == {root}
        assert watch_set.get_dir(root).ok is True

    def test_lost_untracked_directory_not_recorded(self, root, backend):
        listener, watch_set = make_listener(backend, str(root / "*.log"))

        backend.errors.put(WatchLostError(f"Watched directory was removed: {root}", root))
        listener.drain_errors()

        assert watch_set.get_dir(root) is None
        assert watch_set.dir_count() == 0

    def test_run_in_thread_processes_live_events(self, root, backend):
        path = root / "live.log"
        listener, watch_set = make_listener(backend, str(root / "*.log"))
        thread = threading.Thread(target=listener.run)
        thread.start()

        path.write_bytes(b"12")
        backend.events.put(ChangeEvent(ChangeKind.CREATE, path))
        backend.events.put(ChangeEvent(ChangeKind.REMOVE, root / "other.log"))
        backend.close()
        thread.join(timeout=5.0)

        assert not thread.is_alive()
        assert watch_set.get_offset(path) == 2
