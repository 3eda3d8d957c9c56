import os
import json
import math
import logging
import numbers
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from constants import (LAYERS_FILE_NAME, DEFAULT_WIDTH, DEFAULT_HEIGHT, DEFAULT_CHAR_SCALE,
                       DEFAULT_CHAR_DEPTH, DEFAULT_WANDER, DEFAULT_LAYER_DEPTH,
                       DEFAULT_FRAME_SIZE, DEFAULT_ANIM_RATE, DEFAULT_CELL_SIZE)
from models import Activity

log = logging.getLogger(__name__)


class MapConfigError(Exception):
    """layers.json could not be loaded. Fatal at startup."""


@dataclass
class CharacterConfig:
    x: float
    y: float
    scale: float = DEFAULT_CHAR_SCALE
    depth: int = DEFAULT_CHAR_DEPTH
    wander: float = DEFAULT_WANDER


@dataclass
class LayerConfig:
    path: str
    x: float
    y: float
    depth: int = DEFAULT_LAYER_DEPTH
    scale: float = 1.0
    alpha: float = 1.0


@dataclass
class AnimConfig:
    path: str
    frames: int = 1
    rate: int = DEFAULT_ANIM_RATE
    repeat: int = -1


@dataclass
class SpritesConfig:
    frame_width: int = DEFAULT_FRAME_SIZE
    frame_height: int = DEFAULT_FRAME_SIZE
    anims: Dict[str, AnimConfig] = field(default_factory=dict)


@dataclass
class GridConfig:
    cell_size: int = DEFAULT_CELL_SIZE
    blocked: FrozenSet[Tuple[int, int]] = frozenset()  # (col, row)


@dataclass
class PoiConfig:
    name: str
    x: float
    y: float
    activity: Optional[Activity] = None


@dataclass
class MapConfig:
    width: int
    height: int
    character: CharacterConfig
    grid: GridConfig = field(default_factory=GridConfig)
    pois: List[PoiConfig] = field(default_factory=list)
    layers: List[LayerConfig] = field(default_factory=list)
    sprites: Optional[SpritesConfig] = None


def _section(data, key, kind, where):
    value = data.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        raise MapConfigError(f"{where}: '{key}' must be a {'list' if kind is list else 'object'}")
    return value


def _num(data, key, default, where, integer=False):
    """Fetch a numeric field, falling back to default when absent."""
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise MapConfigError(f"{where}: '{key}' must be a number, got {value!r}")
    if not math.isfinite(value):
        raise MapConfigError(f"{where}: '{key}' must be finite, got {value!r}")
    return int(value) if integer else float(value)


def _parse_activity_tag(raw, poi_name):
    if raw is None:
        return None
    if isinstance(raw, str):
        lowered = raw.lower()
        for member in Activity:
            if member.value == lowered:
                return member
    log.warning("POI '%s' has unknown activity tag %r, ignoring tag", poi_name, raw)
    return None


def _parse_grid(data):
    grid = _section(data, "grid", dict, "layers.json")
    cell_size = _num(grid, "cell_size", DEFAULT_CELL_SIZE, "grid", integer=True)
    if cell_size <= 0:
        raise MapConfigError("grid: 'cell_size' must be positive")

    blocked = set()
    for entry in _section(grid, "blocked", list, "grid"):
        if (not isinstance(entry, (list, tuple)) or len(entry) != 2
                or not all(isinstance(v, int) and not isinstance(v, bool) for v in entry)):
            raise MapConfigError(f"grid: blocked cell must be [col, row], got {entry!r}")
        blocked.add((entry[0], entry[1]))

    # ASCII mask, one string per row, '#' marks a blocked cell
    for row, line in enumerate(_section(grid, "rows", list, "grid")):
        if not isinstance(line, str):
            raise MapConfigError(f"grid: rows[{row}] must be a string")
        for col, ch in enumerate(line):
            if ch == '#':
                blocked.add((col, row))

    return GridConfig(cell_size=cell_size, blocked=frozenset(blocked))


def _parse_pois(data):
    pois = []
    for i, entry in enumerate(_section(data, "pois", list, "layers.json")):
        where = f"pois[{i}]"
        if not isinstance(entry, dict):
            raise MapConfigError(f"{where}: must be an object")
        name = entry.get("name", f"poi-{i}")
        if "x" not in entry or "y" not in entry:
            raise MapConfigError(f"{where}: needs both 'x' and 'y'")
        pois.append(PoiConfig(
            name=str(name),
            x=_num(entry, "x", 0.0, where),
            y=_num(entry, "y", 0.0, where),
            activity=_parse_activity_tag(entry.get("activity"), name),
        ))
    return pois


def _parse_layers(data, layers_dir, width, height):
    layers = []
    for i, entry in enumerate(_section(data, "layers", list, "layers.json")):
        where = f"layers[{i}]"
        if not isinstance(entry, dict) or not isinstance(entry.get("image"), str):
            raise MapConfigError(f"{where}: needs an 'image' path")
        img_path = os.path.join(layers_dir, entry["image"])
        if not os.path.exists(img_path):
            log.warning("Layer not found: %s", img_path)
            continue
        layers.append(LayerConfig(
            path=img_path,
            x=_num(entry, "x", width / 2.0, where),
            y=_num(entry, "y", height / 2.0, where),
            depth=_num(entry, "depth", DEFAULT_LAYER_DEPTH, where, integer=True),
            scale=_num(entry, "scale", 1.0, where),
            alpha=_num(entry, "alpha", 1.0, where),
        ))
    return layers


def _parse_sprites(data, layers_dir):
    if data.get("sprites") is None:
        return None
    scfg = _section(data, "sprites", dict, "layers.json")
    sprites = SpritesConfig(
        frame_width=_num(scfg, "frame_width", DEFAULT_FRAME_SIZE, "sprites", integer=True),
        frame_height=_num(scfg, "frame_height", DEFAULT_FRAME_SIZE, "sprites", integer=True),
    )
    for key, acfg in _section(scfg, "anims", dict, "sprites").items():
        where = f"sprites.anims.{key}"
        if not isinstance(acfg, dict) or not isinstance(acfg.get("file"), str):
            raise MapConfigError(f"{where}: needs a 'file' path")
        img_path = os.path.join(layers_dir, acfg["file"])
        if not os.path.exists(img_path):
            log.warning("Sprite not found: %s", img_path)
            continue
        sprites.anims[key] = AnimConfig(
            path=img_path,
            frames=_num(acfg, "frames", 1, where, integer=True),
            rate=_num(acfg, "rate", DEFAULT_ANIM_RATE, where, integer=True),
            repeat=_num(acfg, "repeat", -1, where, integer=True),
        )
    return sprites


def load_map_config(layers_dir):
    """Load layers.json from layers_dir.

    Raises MapConfigError if the file is absent or malformed; individual
    missing images are skipped with a warning instead.
    """
    cfg_path = os.path.join(layers_dir, LAYERS_FILE_NAME)
    try:
        with open(cfg_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise MapConfigError(f"{cfg_path}: map configuration not found")
    except (OSError, UnicodeDecodeError) as e:
        raise MapConfigError(f"{cfg_path}: {e}")
    except json.JSONDecodeError as e:
        raise MapConfigError(f"{LAYERS_FILE_NAME}: {e}")
    if not isinstance(data, dict):
        raise MapConfigError(f"{LAYERS_FILE_NAME}: top level must be an object")

    width = _num(data, "width", DEFAULT_WIDTH, "layers.json", integer=True)
    height = _num(data, "height", DEFAULT_HEIGHT, "layers.json", integer=True)
    if width <= 0 or height <= 0:
        raise MapConfigError("layers.json: width and height must be positive")

    cc = _section(data, "character", dict, "layers.json")
    character = CharacterConfig(
        x=_num(cc, "x", width / 2.0, "character"),
        y=_num(cc, "y", height * 0.66, "character"),
        scale=_num(cc, "scale", DEFAULT_CHAR_SCALE, "character"),
        depth=_num(cc, "depth", DEFAULT_CHAR_DEPTH, "character", integer=True),
        wander=_num(cc, "wander", DEFAULT_WANDER, "character"),
    )

    config = MapConfig(
        width=width,
        height=height,
        character=character,
        grid=_parse_grid(data),
        pois=_parse_pois(data),
        layers=_parse_layers(data, layers_dir, width, height),
        sprites=_parse_sprites(data, layers_dir),
    )
    log.debug("Loaded map %dx%d with %d POIs, %d layers", width, height,
              len(config.pois), len(config.layers))
    return config
