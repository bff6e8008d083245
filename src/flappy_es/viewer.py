"""Live pygame view of a training run.

Pipes are drawn as rectangles and birds as circles; no image assets
are needed.  Press SPACE to toggle fast-forward (no frame limiting),
close the window to stop training.
"""

from __future__ import annotations

import sys
from typing import Optional

import pygame

from .config import ESConfig
from .observers import GenerationObserver, TickSnapshot

SCREEN_WIDTH = 400
SCREEN_HEIGHT = 600
FPS = 60

# Colours
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
GREEN = (0, 200, 0)
BIRD_COLOR = (255, 200, 50)


class PygameViewer(GenerationObserver):
    """Draw every tick of the running generation."""

    def __init__(
        self,
        config: Optional[ESConfig] = None,
        width: int = SCREEN_WIDTH,
        height: int = SCREEN_HEIGHT,
        fps: int = FPS,
    ):
        self.config = config or ESConfig()
        self.width = width
        self.height = height
        self.fps = fps
        self.fast_forward = False

        pygame.init()
        self.screen = pygame.display.set_mode((width, height))
        pygame.display.set_caption("flappy-es")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("Arial", 24)

    def handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                pygame.quit()
                sys.exit()
            if event.type == pygame.KEYDOWN and event.key == pygame.K_SPACE:
                self.fast_forward = not self.fast_forward

    def to_screen(self, x: float, y: float):
        """Map world coordinates (y up) to pixels (y down)."""
        return int(x * self.width), int((1 - y) * self.height)

    def draw(self, snapshot: TickSnapshot) -> None:
        cfg = self.config
        self.screen.fill(BLACK)

        pipe_w = int(cfg.pipe_width * self.width)
        for obstacle in snapshot.obstacles:
            left, _ = self.to_screen(obstacle.x, 0)
            _, gap_top = self.to_screen(0, obstacle.y + cfg.pipe_gap / 2)
            _, gap_bottom = self.to_screen(0, obstacle.y - cfg.pipe_gap / 2)
            pygame.draw.rect(self.screen, GREEN, (left, 0, pipe_w, gap_top))
            pygame.draw.rect(
                self.screen, GREEN,
                (left, gap_bottom, pipe_w, self.height - gap_bottom),
            )

        radius = max(1, int(cfg.bird_radius * self.height))
        for y in snapshot.positions:
            pygame.draw.circle(
                self.screen, BIRD_COLOR, self.to_screen(cfg.bird_offset, y), radius
            )

        text = self.font.render(self.caption(snapshot), True, WHITE)
        self.screen.blit(text, (10, 10))
        pygame.display.flip()

    def caption(self, snapshot: TickSnapshot) -> str:
        """Stats line: generation, survivors, progress and all-time best."""
        text = (
            f"Gen: {snapshot.generation} | Alive: {snapshot.alive}"
            f"/{snapshot.population_size} | Score: {snapshot.score_readout:.1f}"
        )
        # No bird has died yet in the first generation.
        if snapshot.best_fitness > float("-inf"):
            text += f" | Best: {snapshot.best_fitness:.1f}"
        return text

    def on_tick(self, snapshot: TickSnapshot) -> None:
        self.handle_events()
        self.draw(snapshot)
        if not self.fast_forward:
            self.clock.tick(self.fps)

    def close(self) -> None:
        pygame.quit()
