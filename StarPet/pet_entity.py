import logging

from models import Activity

log = logging.getLogger(__name__)


class ActivityStateMachine:
    """Holds the pet's current activity plus its display-only detail/progress.

    Any activity may follow any other. Listeners hear about a transition only
    when the canonical activity actually changes; detail/progress updates are
    silent.
    """

    def __init__(self, state):
        self.state = state  # PetRuntimeState, owned by the engine
        self._listeners = []

    @property
    def activity(self):
        return self.state.activity

    def subscribe(self, callback):
        """Register callback(previous, current) for activity changes."""
        self._listeners.append(callback)

    def apply_normalized(self, activity: Activity, detail=None, progress=None) -> bool:
        self.state.detail = detail
        self.state.progress = progress

        previous = self.state.activity
        if activity == previous:
            return False

        log.info("Pet transitioning from %s to %s", previous.value, activity.value)
        self.state.activity = activity
        for callback in self._listeners:
            callback(previous, activity)
        return True
