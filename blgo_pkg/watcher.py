"""
Rebuild-on-change.

The watch set is the source files found at startup plus the three template
files. Files created later are not picked up until the process restarts.
Events are queued by the watchdog observer thread and consumed by a single
consumer, so only one rebuild runs at a time.
"""

import enum
import logging
import os
import queue
import threading

from watchdog.events import (
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .errors import BuildError

WRITE = 'WRITE'
REMOVE = 'REMOVE'

POLL_INTERVAL = 0.5


class WatcherState(enum.Enum):
    IDLE = 'idle'
    BUILDING = 'building'


class _EventForwarder(FileSystemEventHandler):
    """Hands every observer event to the watcher's queue."""

    def __init__(self, watcher):
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event):
        self.watcher.enqueue(event)


def _normalize(path):
    return os.path.abspath(os.fsdecode(path))


class ChangeWatcher:
    """
    Calls ``rebuild`` when a watched file is written or removed.

    Args:
        rebuild: Zero-argument callable running one full build. A
            ``BuildError`` it raises is logged and the watcher keeps going.
        paths: Files to watch.
        observer: A watchdog observer, defaults to ``Observer()``.
        logger: Defaults to the ``blgo.watcher`` logger.
    """

    def __init__(self, rebuild, paths, observer=None, logger=None):
        self.rebuild = rebuild
        self.observer = observer if observer is not None else Observer()
        self.logger = logger or logging.getLogger('blgo.watcher')
        self.state = WatcherState.IDLE
        self.rebuilds = 0
        self._watched = set()
        self._scheduled = {}
        self._events = queue.Queue()
        self._stop = threading.Event()
        self._handler = _EventForwarder(self)
        self._consumer = None

        for path in paths:
            self.add(path)

    @property
    def watched(self):
        return frozenset(self._watched)

    def add(self, path):
        """Register path, scheduling a watch on its directory unless a live one exists."""
        path = _normalize(path)
        if path not in self._watched:
            self.logger.info(f"adding {path}")
        self._watched.add(path)

        directory = os.path.dirname(path)
        watch = self._scheduled.get(directory)
        if watch is not None:
            emitters = [emitter for emitter in self.observer.emitters if emitter.watch == watch]
            if self._is_live(emitters):
                return
            self.logger.info(f"watch on {directory} was dropped, scheduling it again")
            if emitters:
                self.observer.unschedule(watch)
        self._scheduled[directory] = self.observer.schedule(self._handler, directory, recursive=False)

    def _is_live(self, emitters):
        # emitter threads only run once the observer has been started
        if not emitters:
            return False
        if self.observer.is_alive():
            return any(emitter.is_alive() for emitter in emitters)
        return True

    def classify(self, event):
        """Return ``(WRITE|REMOVE, path)`` for events on watched files, None otherwise."""
        if event.is_directory:
            return None

        src = _normalize(event.src_path)
        if event.event_type == EVENT_TYPE_MODIFIED and src in self._watched:
            return WRITE, src
        if event.event_type == EVENT_TYPE_DELETED and src in self._watched:
            return REMOVE, src
        if event.event_type == EVENT_TYPE_MOVED:
            # editors that save through a temporary file end up here
            dest = _normalize(event.dest_path)
            if dest in self._watched:
                return WRITE, dest
            if src in self._watched:
                return REMOVE, src
        return None

    def enqueue(self, event):
        change = self.classify(event)
        if change is not None:
            self._events.put(change)

    def handle(self, change):
        """Run one rebuild for change, then re-register its path."""
        kind, path = change
        self.logger.info(f"{kind} {path}")
        self.state = WatcherState.BUILDING
        try:
            self.rebuild()
        except BuildError as e:
            self.logger.error(f"Rebuild aborted: {e}")
        finally:
            self.state = WatcherState.IDLE
            self.rebuilds += 1

        try:
            self.add(path)
        except OSError as e:
            self.logger.warning(f"Could not re-register {path}: {e}")

    def process_pending(self):
        """Handle every queued change in order. Returns how many were handled."""
        handled = 0
        while True:
            try:
                change = self._events.get_nowait()
            except queue.Empty:
                return handled
            self.handle(change)
            handled += 1

    def run(self):
        """Consume changes until stop() is called."""
        while not self._stop.is_set():
            try:
                change = self._events.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
            try:
                self.handle(change)
            except Exception:
                self.logger.exception(f"Rebuild crashed, still watching: {change[1]}")

    def start(self):
        self._stop.clear()
        self.observer.start()
        self._consumer = threading.Thread(target=self.run, name='blgo-watcher', daemon=True)
        self._consumer.start()
        self.logger.info(f"Watching {len(self._watched)} files for changes")

    def stop(self):
        self._stop.set()
        self.observer.stop()
        self.observer.join()
        if self._consumer is not None:
            self._consumer.join()
            self._consumer = None
