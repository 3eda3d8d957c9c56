import math
from enum import Enum, auto
from dataclasses import dataclass, field
from typing import List, Optional


class Activity(str, Enum):
    """
    The closed set of things the pet can be doing.
    Lookup is case-insensitive, understands a few aliases and maps anything
    else to IDLE, so Activity(raw) never raises for a string.
    """
    IDLE = "idle"
    WRITING = "writing"
    RECEIVING = "receiving"
    REPLYING = "replying"
    RESEARCHING = "researching"
    EXECUTING = "executing"
    SYNCING = "syncing"
    ERROR = "error"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value == lowered:
                    return member
            alias = ALIASES.get(lowered)
            if alias is not None:
                return cls(alias)
            return cls.IDLE
        return super()._missing_(value)


# Alias -> canonical value. Direct canonical matches are checked first.
ALIASES = {
    "working": "writing",
    "run": "executing",
    "running": "executing",
    "sync": "syncing",
    "research": "researching",
}


def normalize(raw: str) -> Activity:
    """Map a raw status string onto an Activity (IDLE when unrecognized)."""
    return Activity(raw)


@dataclass(frozen=True)
class StatusDocument:
    state: str
    detail: Optional[str] = None
    progress: Optional[float] = None
    updated_at: Optional[str] = None


class ReadFailureKind(Enum):
    MISSING = auto()
    UNREADABLE = auto()
    INVALID_JSON = auto()
    INVALID_STATE = auto()


@dataclass(frozen=True)
class ReadFailure:
    kind: ReadFailureKind
    message: str = ""


@dataclass(frozen=True)
class Position:
    x: float
    y: float

    def distance_to(self, other: "Position") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)


class NavMode(Enum):
    WANDER = auto()
    DIRECTED = auto()


@dataclass
class PetRuntimeState:
    """Everything the engine mutates. One instance per running pet."""
    position: Position
    activity: Activity = Activity.IDLE
    detail: Optional[str] = None
    progress: Optional[float] = None
    mode: NavMode = NavMode.WANDER
    goal: Optional[Position] = None  # POI being walked to (directed mode only)
    path: List[Position] = field(default_factory=list)
    facing: int = 1  # 1 = right, -1 = left
    wander_timer: float = 0.0

    @property
    def moving(self) -> bool:
        return bool(self.path)

    def snapshot(self) -> "PetSnapshot":
        return PetSnapshot(
            activity=self.activity,
            detail=self.detail,
            progress=self.progress,
            position=self.position,
            mode=self.mode,
            moving=self.moving,
            facing=self.facing,
        )


@dataclass(frozen=True)
class PetSnapshot:
    """Read-only view handed to the presentation layer."""
    activity: Activity
    detail: Optional[str]
    progress: Optional[float]
    position: Position
    mode: NavMode
    moving: bool
    facing: int
