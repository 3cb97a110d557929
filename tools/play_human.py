"""
Human Play Mode
================

Play Flappy Arena interactively in a pygame window.

Controls:
    - Space / Up / Click: Jump (also starts and resumes the game)
    - ESC: Pause / resume
    - R: Restart after game over
    - Close window: Quit

Usage:
    python -m tools.play_human [--seed SEED] [--preset compact] [--fps FPS]
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

from flappy_arena.flappy_core.config_loader import GameConfig, load_config, load_preset
from flappy_arena.flappy_core.game import (
    CoreGame,
    GameEvent,
    GamePhase,
    FIRST_PIPE_CLEARED,
    GAME_OVER,
)
from flappy_arena.flappy_core.persistence import JsonFileBestScoreStore
from flappy_arena.flappy_core.scheduler import FrameScheduler

DEFAULT_SCORE_FILE = os.path.join(os.path.expanduser("~"), ".flappy_arena", "scores.json")

JUMP_KEYS = (pygame.K_SPACE, pygame.K_UP) if PYGAME_AVAILABLE else ()


class FlappyRenderer:
    """
    Flat-color renderer: sky, pipes, bird, score and overlays.
    """

    def __init__(self, config: GameConfig, window_width: int, window_height: int):
        self._config = config
        self._window_width = window_width
        self._window_height = window_height

        # Colors
        self._sky = (112, 197, 206)
        self._ground = (222, 216, 149)
        self._pipe_fill = (115, 191, 46)
        self._pipe_border = (84, 56, 71)
        self._bird_fill = (250, 200, 60)
        self._bird_eye = (255, 255, 255)
        self._text_dark = (40, 40, 40)
        self._text_light = (255, 255, 255)
        self._overlay = (0, 0, 0, 120)

        pygame.font.init()
        self._font_huge = pygame.font.Font(None, 64)
        self._font_medium = pygame.font.Font(None, 32)
        self._font_small = pygame.font.Font(None, 22)

        # Arena is drawn from the top of the window; the rest is ground
        self._arena_height = int(config.arena.height)

        self.show_instructions = True

    def render(self, screen: "pygame.Surface", render_data: dict) -> None:
        screen.fill(self._ground)
        pygame.draw.rect(screen, self._sky, (0, 0, self._window_width, self._arena_height))

        self._draw_pipes(screen, render_data)
        self._draw_bird(screen, render_data)
        self._draw_score(screen, render_data)

        if self.show_instructions and render_data["phase"] == GamePhase.NOT_STARTED.name:
            self._draw_instructions(screen)
        if render_data["phase"] == GamePhase.PAUSED.name:
            self._draw_banner(screen, "PAUSED", "ESC to resume")
        if render_data["phase"] == GamePhase.OVER.name:
            best = render_data.get("best_score")
            sub = f"Best: {best}   -   R to restart" if best is not None else "R to restart"
            self._draw_banner(screen, f"Score: {render_data['final_score']}", sub)

    def _draw_pipes(self, screen: "pygame.Surface", render_data: dict) -> None:
        ceiling = int(render_data["ceiling"])
        floor = int(render_data["floor"])
        for pipe in render_data["pipes"]:
            x = int(pipe["x"])
            width = int(pipe["width"])
            if x > self._window_width or x + width < 0:
                continue
            gap_top = int(pipe["gap_top"])
            gap_bottom = int(pipe["gap_top"] + pipe["gap_height"])

            upper = pygame.Rect(x, ceiling, width, gap_top - ceiling)
            lower = pygame.Rect(x, gap_bottom, width, floor - gap_bottom)
            for rect in (upper, lower):
                pygame.draw.rect(screen, self._pipe_fill, rect)
                pygame.draw.rect(screen, self._pipe_border, rect, 2)

    def _draw_bird(self, screen: "pygame.Surface", render_data: dict) -> None:
        bird = render_data["bird"]
        rect = pygame.Rect(int(bird["x"]), int(bird["y"]), int(bird["width"]), int(bird["height"]))
        pygame.draw.ellipse(screen, self._bird_fill, rect)
        pygame.draw.ellipse(screen, self._pipe_border, rect, 2)
        eye = (rect.right - rect.width // 4, rect.top + rect.height // 3)
        pygame.draw.circle(screen, self._bird_eye, eye, max(2, rect.height // 6))

    def _draw_score(self, screen: "pygame.Surface", render_data: dict) -> None:
        text = self._font_huge.render(str(render_data["score"]), True, self._text_light)
        screen.blit(text, text.get_rect(center=(self._window_width // 2, 50)))

    def _draw_instructions(self, screen: "pygame.Surface") -> None:
        lines = [
            "SPACE or CLICK to flap",
            "ESC to pause",
        ]
        y = self._arena_height // 2
        for line in lines:
            text = self._font_medium.render(line, True, self._text_dark)
            screen.blit(text, text.get_rect(center=(self._window_width // 2, y)))
            y += 36

    def _draw_banner(self, screen: "pygame.Surface", title: str, subtitle: str) -> None:
        overlay = pygame.Surface((self._window_width, self._window_height), pygame.SRCALPHA)
        overlay.fill(self._overlay)
        screen.blit(overlay, (0, 0))

        center_x = self._window_width // 2
        center_y = self._window_height // 2
        text = self._font_huge.render(title, True, self._text_light)
        screen.blit(text, text.get_rect(center=(center_x, center_y - 20)))
        text = self._font_small.render(subtitle, True, self._text_light)
        screen.blit(text, text.get_rect(center=(center_x, center_y + 25)))


class HumanPlayer:
    """
    Human-playable Flappy game driven by the frame scheduler.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        target_fps: int = 60,
        score_file: str = DEFAULT_SCORE_FILE
    ):
        if not PYGAME_AVAILABLE:
            raise ImportError("pygame required. Install: pip install pygame")

        if config is None:
            config = load_config()

        self._config = config
        self._seed = seed
        self._target_fps = target_fps
        self._window_width = int(config.arena.viewport_width)
        self._window_height = int(round(config.arena.height / 0.7))

        # Initialize game
        self._game = CoreGame(
            config=config,
            seed=seed,
            best_score_store=JsonFileBestScoreStore(score_file)
        )
        self._game.add_listener(FIRST_PIPE_CLEARED, self._on_first_pipe)
        self._game.add_listener(GAME_OVER, self._on_game_over)

        # Initialize pygame
        pygame.init()
        self._screen = pygame.display.set_mode((self._window_width, self._window_height))
        pygame.display.set_caption("Flappy Arena")
        self._clock = pygame.time.Clock()

        self._renderer = FlappyRenderer(config, self._window_width, self._window_height)
        self._scheduler = self._new_scheduler()
        self._quit = False

    def _new_scheduler(self) -> FrameScheduler:
        return FrameScheduler(self._frame, wait=lambda: self._clock.tick(self._target_fps))

    def _on_first_pipe(self, event: GameEvent) -> None:
        self._renderer.show_instructions = False

    def _on_game_over(self, event: GameEvent) -> None:
        print(f"Game over ({event.reason}): score={event.score}, best={event.best_score}")

    def run(self) -> int:
        """Run the game loop. Returns the last score."""
        while not self._quit:
            self._scheduler.run()
            # The scheduler terminates at game over; keep the window alive
            # until the player restarts or quits.
            while not self._quit and self._game.is_over:
                self._handle_events()
                self._render()
                self._clock.tick(self._target_fps)
            if not self._quit:
                self._scheduler = self._new_scheduler()

        pygame.quit()
        return self._game.score

    def _frame(self) -> bool:
        self._handle_events()
        if self._quit:
            self._scheduler.terminate()
            return False
        result = self._game.tick()
        self._render()
        return result.should_continue

    def _handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._quit = True
            elif event.type == pygame.KEYDOWN:
                if event.key in JUMP_KEYS:
                    self._game.press_jump()
                elif event.key == pygame.K_ESCAPE:
                    self._game.toggle_pause()
                elif event.key == pygame.K_r and self._game.is_over:
                    self._restart()
            elif event.type == pygame.KEYUP:
                if event.key in JUMP_KEYS:
                    self._game.release_jump()
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self._game.press_jump()
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                self._game.release_jump()

    def _restart(self) -> None:
        self._game.restart()
        self._renderer.show_instructions = True

    def _render(self) -> None:
        self._renderer.render(self._screen, self._game.get_render_data())
        pygame.display.flip()


def main():
    parser = argparse.ArgumentParser(description="Play Flappy Arena interactively")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--preset", type=str, default=None, help="Bundled tuning (e.g. compact)")
    parser.add_argument("--fps", type=int, default=60, help="Target FPS")
    parser.add_argument("--score-file", type=str, default=DEFAULT_SCORE_FILE,
                        help="Where the best score is kept")
    parser.add_argument("--verbose", action="store_true", help="Log core events")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        config = load_preset(args.preset) if args.preset else load_config()
        player = HumanPlayer(
            config=config,
            seed=args.seed,
            target_fps=args.fps,
            score_file=args.score_file
        )
        score = player.run()
        print(f"\nFinal Score: {score}")
        return 0
    except ImportError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
