import queue
import random
import logging

from constants import POLL_INTERVAL, STEP_DISTANCE, WANDER_INTERVAL, WANDER_SEED
from models import PetRuntimeState, Position, ReadFailure, normalize
from navigator import Grid, Navigator
from pet_entity import ActivityStateMachine
from poi_registry import PoiRegistry
from status_store import StatusPoller

log = logging.getLogger(__name__)


class BehaviorEngine:
    """Status file in, pet activity and position out.

    The poller thread only produces read results. They are applied in
    drain(), which runs on the animation timeline, so pet state is only ever
    mutated from one place.
    """

    def __init__(self, map_config, store, poll_interval=POLL_INTERVAL,
                 step_distance=STEP_DISTANCE, wander_interval=WANDER_INTERVAL, rng=None):
        self.store = store
        self.poll_interval = poll_interval
        home = Position(map_config.character.x, map_config.character.y)
        self.state = PetRuntimeState(position=home)

        self.registry = PoiRegistry(map_config.pois)
        log.info("Map has %d POIs (%d tied to an activity): %s", len(self.registry.names()),
                 len(self.registry), ", ".join(self.registry.names()) or "none")
        if rng is None:
            rng = random.Random(WANDER_SEED)
        self.navigator = Navigator(
            Grid.from_config(map_config),
            self.registry,
            step_distance=step_distance,
            wander_radius=map_config.character.wander,
            wander_interval=wander_interval,
            rng=rng,
        )
        self.machine = ActivityStateMachine(self.state)
        self.machine.subscribe(self._on_activity_changed)

        self._results = queue.Queue()
        self._poller = None
        self._last_failure = None

        # Starting activity is idle, so begin by wandering around home
        self.navigator.retarget(self.state, self.state.activity)

    def _on_activity_changed(self, previous, current):
        self.navigator.retarget(self.state, current)

    def handle_result(self, result):
        """Apply one read result. Failures leave the pet exactly as it was."""
        if isinstance(result, ReadFailure):
            if result.kind != self._last_failure:
                log.warning("Status read failed (%s): %s", result.kind.name.lower(), result.message)
            else:
                log.debug("Status read still failing (%s)", result.kind.name.lower())
            self._last_failure = result.kind
            return False

        if self._last_failure is not None:
            log.info("Status file readable again")
            self._last_failure = None
        activity = normalize(result.state)
        return self.machine.apply_normalized(activity, result.detail, result.progress)

    def poll_once(self):
        return self.handle_result(self.store.read())

    def start(self):
        if self._poller is None:
            self._poller = StatusPoller(self.store, self.poll_interval, self._results.put)
        self._poller.start()

    def stop(self):
        if self._poller is not None:
            self._poller.stop()

    def drain(self):
        """Apply every queued read result, oldest first."""
        applied = 0
        while True:
            try:
                result = self._results.get_nowait()
            except queue.Empty:
                return applied
            self.handle_result(result)
            applied += 1

    def tick(self, dt):
        self.drain()
        self.navigator.tick(self.state, dt)

    def snapshot(self):
        return self.state.snapshot()
