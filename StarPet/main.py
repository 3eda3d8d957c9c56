import os
import sys
import time
import logging
import pygame

from constants import *
from engine import BehaviorEngine
from map_config import MapConfigError, load_map_config
from models import Activity
from presentation import describe
from status_store import StatusStore
from thought_bubble import ThoughtBubble

log = logging.getLogger(__name__)


def configure_logging(level=LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class SpriteClip:
    """One animation: a horizontal strip of equally sized frames."""

    def __init__(self, sheet, frame_width, frame_height, frames, rate, repeat, scale):
        self.frames = []
        frame_width = max(1, min(frame_width, sheet.get_width()))
        frame_height = max(1, min(frame_height, sheet.get_height()))
        count = max(1, min(frames, sheet.get_width() // frame_width))
        size = (max(1, int(frame_width * scale)), max(1, int(frame_height * scale)))
        for i in range(count):
            frame = sheet.subsurface(pygame.Rect(i * frame_width, 0, frame_width, frame_height))
            self.frames.append(pygame.transform.scale(frame, size))
        self.rate = max(1, rate)
        self.repeat = repeat

    def frame_at(self, elapsed):
        index = int(elapsed * self.rate)
        if self.repeat >= 0:
            # Play (repeat + 1) times, then hold the last frame
            last = len(self.frames) * (self.repeat + 1) - 1
            if index >= last:
                return self.frames[-1]
        return self.frames[index % len(self.frames)]


class GameEngine:
    """Draws whatever the behavior engine says the pet is doing."""

    def __init__(self, engine, map_config):
        pygame.init()
        self.engine = engine
        self.map = map_config

        self.screen = pygame.display.set_mode((map_config.width, map_config.height))
        pygame.display.set_caption("Star Pet")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 16)
        self.running = True

        self.layers = self._load_layers()
        self.clips = self._load_clips()
        self.current_clip = None
        self.clip_time = 0.0
        self._caption = None

        self.bubble = ThoughtBubble(self.screen, self.font, self._pet_screen_pos)
        self._last_step_time = time.time()

    def _load_layers(self):
        layers = []
        for layer in sorted(self.map.layers, key=lambda l: l.depth):
            try:
                image = pygame.image.load(layer.path)
            except pygame.error as e:
                log.warning("Could not load layer %s: %s", layer.path, e)
                continue
            if layer.scale != 1.0:
                size = (max(1, int(image.get_width() * layer.scale)),
                        max(1, int(image.get_height() * layer.scale)))
                image = pygame.transform.scale(image, size)
            if layer.alpha < 1.0:
                image.set_alpha(int(max(0.0, layer.alpha) * 255))
            rect = image.get_rect(center=(int(layer.x), int(layer.y)))
            layers.append((layer.depth, image, rect))
        return layers

    def _load_clips(self):
        clips = {}
        sprites = self.map.sprites
        if sprites is None:
            return clips
        for key, anim in sprites.anims.items():
            try:
                sheet = pygame.image.load(anim.path)
            except pygame.error as e:
                log.warning("Could not load sprite %s: %s", anim.path, e)
                continue
            clips[key] = SpriteClip(sheet, sprites.frame_width, sprites.frame_height,
                                    anim.frames, anim.rate, anim.repeat, self.map.character.scale)
        return clips

    def _pet_screen_pos(self):
        pos = self.engine.state.position
        return int(pos.x), int(pos.y)

    def draw_progress_bar(self, x, y, value):
        bar_width, bar_height = 40, 5
        pygame.draw.rect(self.screen, COLOR_UI_BAR_BG, (x, y, bar_width, bar_height), border_radius=2)
        pygame.draw.rect(self.screen, COLOR_PROGRESS, (x, y, int(bar_width * value), bar_height), border_radius=2)

    def draw_pet(self, snapshot, clip_key):
        x, y = int(snapshot.position.x), int(snapshot.position.y)
        clip = self.clips.get(clip_key) if clip_key else None
        if clip is not None:
            frame = clip.frame_at(self.clip_time)
            if snapshot.facing < 0:
                frame = pygame.transform.flip(frame, True, False)
            self.screen.blit(frame, frame.get_rect(midbottom=(x, y)))
            return frame.get_height()

        # No sprites configured: a plain blob with eyes
        radius = int(6 * self.map.character.scale)
        body = COLOR_ERROR if snapshot.activity == Activity.ERROR else COLOR_PET_BODY
        pygame.draw.circle(self.screen, body, (x, y - radius), radius)
        eye_dx = max(2, radius // 3) * snapshot.facing
        pygame.draw.circle(self.screen, COLOR_PET_EYES, (x + eye_dx, y - radius - 2), max(1, radius // 5))
        return radius * 2

    def step(self):
        now = time.time()
        dt = now - self._last_step_time
        self._last_step_time = now

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False

        self.engine.tick(dt)
        snapshot = self.engine.snapshot()
        view = describe(snapshot, self.clips.keys())

        if view.clip != self.current_clip:
            self.current_clip = view.clip
            self.clip_time = 0.0
        else:
            self.clip_time += dt

        caption = f"{view.icon} Star Pet: {view.bubble}"
        if caption != self._caption:
            pygame.display.set_caption(caption)
            self._caption = caption

        self.screen.fill(COLOR_BG)
        char_depth = self.map.character.depth
        for depth, image, rect in self.layers:
            if depth <= char_depth:
                self.screen.blit(image, rect)
        pet_height = self.draw_pet(snapshot, view.clip)
        for depth, image, rect in self.layers:
            if depth > char_depth:
                self.screen.blit(image, rect)

        self.bubble.set_message(view.bubble)
        self.bubble.draw(lift=pet_height + 4)
        if view.progress is not None:
            x, y = self._pet_screen_pos()
            self.draw_progress_bar(x - 20, y + 3, view.progress)

        pygame.display.flip()

    def run(self):
        while self.running:
            self.step()
            self.clock.tick(FPS)


def main():
    configure_logging()
    root = find_project_root()
    state_path = os.path.join(root, STATE_FILE_NAME)
    layers_dir = os.path.join(root, LAYERS_DIR_NAME)
    print(f"📦 State : {state_path}")
    print(f"🎨 Layers: {layers_dir}")

    try:
        map_config = load_map_config(layers_dir)
    except MapConfigError as e:
        log.error("Cannot start without a map: %s", e)
        return 1

    engine = BehaviorEngine(map_config, StatusStore(state_path))
    game = GameEngine(engine, map_config)
    engine.start()
    try:
        game.run()
    finally:
        engine.stop()
        pygame.quit()
    return 0


if __name__ == "__main__":
    sys.exit(main())
