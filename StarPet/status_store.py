import json
import math
import logging
import numbers
import threading

from models import ReadFailure, ReadFailureKind, StatusDocument

log = logging.getLogger(__name__)


def _display_text(value):
    """Detail text safe to hand to pygame: no NULs, no lone surrogates."""
    if not isinstance(value, str):
        return None
    value = value.replace("\x00", "")
    return value.encode("utf-8", "replace").decode("utf-8")


class StatusStore:
    """Reads the status file written by the external agent.

    Every problem with the file is reported as a ReadFailure value rather than
    raised; the caller decides what (if anything) to do about it.
    """

    def __init__(self, path):
        self.path = path

    def read(self):
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = f.read()
        except FileNotFoundError as e:
            return ReadFailure(ReadFailureKind.MISSING, str(e))
        except (OSError, UnicodeDecodeError) as e:
            return ReadFailure(ReadFailureKind.UNREADABLE, f"{self.path}: {e}")

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, RecursionError) as e:
            return ReadFailure(ReadFailureKind.INVALID_JSON, f"parse: {e}")

        if not isinstance(data, dict):
            return ReadFailure(ReadFailureKind.INVALID_STATE, "status document is not an object")
        state = data.get("state")
        if not isinstance(state, str):
            return ReadFailure(ReadFailureKind.INVALID_STATE, "missing or non-string 'state'")

        detail = _display_text(data.get("detail"))
        progress = data.get("progress")
        if (isinstance(progress, bool) or not isinstance(progress, numbers.Real)
                or not math.isfinite(progress)):
            progress = None
        else:
            progress = float(progress)
        updated_at = data.get("updated_at", data.get("updatedAt"))
        if not isinstance(updated_at, str):
            updated_at = None

        return StatusDocument(state=state, detail=detail, progress=progress, updated_at=updated_at)


class StatusPoller:
    """Background thread that reads the store on a fixed cadence.

    Results go to `sink` (usually Queue.put). The poller never touches pet
    state itself, so a slow disk can't stall the animation loop.
    """

    def __init__(self, store, interval, sink):
        self.store = store
        self.interval = interval
        self.sink = sink
        self._stop = threading.Event()
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="status-poller", daemon=True)
        self._thread.start()
        log.debug("Status poller started (every %.1fs): %s", self.interval, self.store.path)

    def stop(self):
        # Daemon thread: an in-flight read is simply abandoned at exit
        self._stop.set()

    def _loop(self):
        while not self._stop.is_set():
            try:
                self.sink(self.store.read())
            except Exception:
                log.exception("Status poll failed, will retry")
            self._stop.wait(self.interval)
