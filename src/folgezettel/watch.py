"""Watch mode - turns file system events into linker events."""

import asyncio
import json
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Any, Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .adapters.fs_host import FsHost
from .core.model import Note

# ("created", note) | ("renamed", note, old_path) | ("modified", note)
PendingEvent = tuple[Any, ...]


class VaultEventHandler(FileSystemEventHandler):
    """Collects note events in arrival order; repeated modifications of the
    same note within the debounce window collapse into one."""

    def __init__(
        self,
        host: FsHost,
        on_batch: Callable[[list[PendingEvent]], None],
        debounce_ms: int = 150,
    ):
        super().__init__()
        self.host = host
        self.on_batch = on_batch
        self.debounce_ms = debounce_ms

        self.pending: list[PendingEvent] = []
        self.last_event_time = 0.0
        self._lock = threading.Lock()
        # note paths present in the vault, so a save that replaces a note is
        # told apart from a new one
        self.known: set[str] = {n.path for n in host.list_all_notes()}

    def _should_skip(self, path: Path) -> bool:
        """Check if file should be skipped."""
        name = path.name

        # Skip temp/swap files
        if name.endswith("~") or name.endswith(".swp") or name.startswith(".#"):
            return True

        return False

    def _note(self, src: Any) -> Note | None:
        path = Path(str(src))
        if self._should_skip(path):
            return None
        return self.host.note_for(path)

    def _push(self, event: PendingEvent) -> None:
        with self._lock:
            duplicate = event[0] == "modified" and any(
                p[0] == "modified" and p[1] == event[1] for p in self.pending
            )
            if not duplicate:
                self.pending.append(event)
            self.last_event_time = time.time()

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file creation."""
        if event.is_directory:
            return
        note = self._note(event.src_path)
        if note:
            self.known.add(note.path)
            self._push(("created", note))

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification."""
        if event.is_directory:
            return
        note = self._note(event.src_path)
        if note:
            self.known.add(note.path)
            self._push(("modified", note))

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle renames.

        Editors that save atomically write a temp file and move it over the
        note; that counts as a modification of a known note and as a
        creation otherwise.
        """
        if event.is_directory:
            return
        note = self._note(event.dest_path)
        if note is None:
            return
        old = self._note(event.src_path)
        if old is not None:
            self.known.discard(old.path)
            self.known.add(note.path)
            self._push(("renamed", note, old.path))
        elif note.path in self.known:
            self._push(("modified", note))
        else:
            self.known.add(note.path)
            self._push(("created", note))

    def check_and_flush(self) -> None:
        """Check if debounce period has elapsed and flush if so."""
        if not self.pending:
            return

        elapsed = (time.time() - self.last_event_time) * 1000
        if elapsed >= self.debounce_ms:
            self.flush()

    def flush(self) -> None:
        """Hand accumulated events to the batch handler."""
        with self._lock:
            batch = self.pending
            self.pending = []
        if batch and self.on_batch:
            self.on_batch(batch)


def dispatch(host: FsHost, event: PendingEvent) -> bool:
    """Run the linker handlers for one event. False if it was skipped."""
    kind, note = event[0], event[1]
    if kind in ("created", "modified") and host.is_own_change(note):
        return False
    if kind == "renamed":
        host.forget(event[2])
    asyncio.run(host.emit(kind, *event[1:]))
    return True


def watch_vault(
    host: FsHost,
    debounce_ms: int = 150,
    quiet: bool = False,
    json_output: bool = False,
) -> int:
    """
    Watch the vault directory and keep folgezettel links up to date.

    Args:
        host: FsHost with the linker already subscribed
        debounce_ms: Debounce window in milliseconds
        quiet: Suppress output
        json_output: Output JSON events instead of human-readable

    Returns:
        Exit code
    """
    vault_path = host.root
    if not vault_path.exists():
        print(f"Error: Vault not found: {vault_path}", file=sys.stderr)
        return 1

    running = True

    def handle_batch(batch: list[PendingEvent]) -> None:
        """Dispatch a batch of events one at a time, in order."""
        for event in batch:
            start_time = time.time()
            try:
                handled = dispatch(host, event)
            except Exception as e:
                if json_output:
                    print(json.dumps({"type": "error", "message": str(e)}), flush=True)
                else:
                    print(f"Error: {e}", file=sys.stderr, flush=True)
                continue

            if not handled:
                continue
            duration_ms = int((time.time() - start_time) * 1000)
            if json_output:
                print(
                    json.dumps(
                        {
                            "type": event[0],
                            "path": event[1].path,
                            "duration_ms": duration_ms,
                        }
                    ),
                    flush=True,
                )
            elif not quiet:
                print(f"{event[0]}: {event[1].path} ({duration_ms}ms)", flush=True)

    def signal_handler(signum: int, frame: Any) -> None:
        nonlocal running
        running = False
        if not quiet and not json_output:
            print("\nShutting down...", flush=True)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    handler = VaultEventHandler(host, handle_batch, debounce_ms)
    observer = Observer()
    observer.schedule(handler, str(vault_path.resolve()), recursive=True)

    if not quiet and not json_output:
        print(f"Watching {vault_path} (debounce: {debounce_ms}ms)", flush=True)
        print("Press Ctrl+C to stop", flush=True)

    observer.start()

    try:
        while running:
            time.sleep(0.1)
            handler.check_and_flush()
    finally:
        handler.flush()
        observer.stop()
        observer.join()

    if not quiet and not json_output:
        print("Watch stopped", flush=True)

    return 0
