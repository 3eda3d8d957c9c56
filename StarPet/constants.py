import os

# --- GLOBAL CONFIGURATION ---
STATE_FILE_NAME = "state.json"
LAYERS_DIR_NAME = "layers"
LAYERS_FILE_NAME = "layers.json"

# Status polling cadence (seconds). A tolerance, not a contract.
POLL_INTERVAL = float(os.getenv("STAR_POLL_INTERVAL", "2.0"))
# Pause between wander legs (seconds)
WANDER_INTERVAL = float(os.getenv("STAR_WANDER_INTERVAL", "4.0"))
# Distance covered per animation tick (pixels)
STEP_DISTANCE = float(os.getenv("STAR_STEP_DISTANCE", "1.5"))
FPS = int(os.getenv("STAR_FPS", "30"))
# Set STAR_WANDER_SEED to make wander targets reproducible
WANDER_SEED = os.getenv("STAR_WANDER_SEED")
LOG_LEVEL = os.getenv("STAR_LOG_LEVEL", "INFO")

# How far up from the working directory to look for state.json
ROOT_SEARCH_DEPTH = 5

# --- MAP DEFAULTS (used when layers.json leaves a field out) ---
DEFAULT_WIDTH = 200
DEFAULT_HEIGHT = 250
DEFAULT_CHAR_SCALE = 2.5
DEFAULT_CHAR_DEPTH = 0
DEFAULT_WANDER = 18.0
DEFAULT_LAYER_DEPTH = -1
DEFAULT_FRAME_SIZE = 32
DEFAULT_ANIM_RATE = 4
DEFAULT_CELL_SIZE = 10


def find_project_root():
    """Locate the directory holding state.json.

    STAR_PROJECT_ROOT wins; otherwise walk up from the working directory a few
    levels, falling back to the working directory itself.
    """
    env_root = os.getenv("STAR_PROJECT_ROOT")
    if env_root:
        return os.path.abspath(env_root)
    cwd = os.getcwd()
    directory = cwd
    for _ in range(ROOT_SEARCH_DEPTH):
        if os.path.exists(os.path.join(directory, STATE_FILE_NAME)):
            return directory
        parent = os.path.dirname(directory)
        if parent == directory:
            break
        directory = parent
    return cwd


# --- PRESENTATION ---
ACTIVITY_ICONS = {
    'idle': '💤',
    'writing': '✍️',
    'receiving': '📥',
    'replying': '💬',
    'researching': '🔍',
    'executing': '⚙️',
    'syncing': '🔄',
    'error': '❗',
}

ACTIVITY_LABELS = {
    'idle': 'Zzz...',
    'writing': 'Writing',
    'receiving': 'Reading mail',
    'replying': 'Replying',
    'researching': 'Researching',
    'executing': 'Running',
    'syncing': 'Syncing',
    'error': 'Uh oh!',
}

# --- RETRO UI PALETTE ---
COLOR_BG = (40, 44, 52)
COLOR_PET_BODY = (171, 220, 255)
COLOR_PET_EYES = (33, 37, 43)
COLOR_UI_BAR_BG = (62, 68, 81)
COLOR_PROGRESS = (152, 195, 121)
COLOR_TEXT = (171, 178, 191)
COLOR_ERROR = (224, 108, 117)

# --- COMMON COLORS ---
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
