from dataclasses import dataclass
from typing import Optional

from constants import ACTIVITY_ICONS, ACTIVITY_LABELS


@dataclass(frozen=True)
class Presentation:
    icon: str
    bubble: str
    clip: Optional[str]
    progress: Optional[float]  # clamped to 0..1


def choose_clip(snapshot, available):
    """Pick an animation key: the activity's own clip, else walk/idle."""
    if snapshot.activity.value in available:
        return snapshot.activity.value
    if snapshot.moving and "walk" in available:
        return "walk"
    if "idle" in available:
        return "idle"
    return None


def describe(snapshot, available_clips=()):
    bubble = snapshot.detail or ACTIVITY_LABELS[snapshot.activity.value]
    progress = snapshot.progress
    if progress is not None:
        progress = max(0.0, min(1.0, progress))
    return Presentation(
        icon=ACTIVITY_ICONS[snapshot.activity.value],
        bubble=bubble,
        clip=choose_clip(snapshot, available_clips),
        progress=progress,
    )
