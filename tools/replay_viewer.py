"""
Replay Viewer
=============

Watch recorded replays with a seekable timeline.

Usage:
    python tools/replay_viewer.py replay.json
    python -m tools.replay_viewer replay.json

Controls:
    SPACE       Play/Pause
    LEFT/RIGHT  Step backward/forward
    HOME/END    Jump to start/end
    Click       Seek on timeline
    Drag        Scrub timeline
    +/-         Speed up/slow down
    ESC         Quit
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path for direct script execution
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

from flappy_arena.flappy_core.config_loader import GameConfig, load_config, load_preset
from flappy_arena.flappy_core.game import CoreGame
from flappy_arena.flappy_core.replay_recorder import compute_config_hash, load_replay
from tools.play_human import FlappyRenderer

TIMELINE_HEIGHT = 60
TIMELINE_MARGIN = 20


# -----------------------------------------------------------------------------
# Timeline UI Component
# -----------------------------------------------------------------------------
class Timeline:
    """
    Timeline bar for replay navigation.

    Marks every jump and every scored pipe, and supports click/drag seeking.
    """

    def __init__(self, x: int, y: int, width: int, height: int,
                 actions: List[int], scores: List[int]):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.total_steps = max(1, len(actions))
        self.jump_steps = [i for i, a in enumerate(actions) if a]
        self.score_steps = [
            i for i in range(1, len(scores)) if scores[i] > scores[i - 1]
        ]

        self.dragging = False
        self.hover_idx = -1

        # Colors
        self.bg_color = (30, 30, 35)
        self.border_color = (60, 60, 70)
        self.jump_color = (80, 120, 180)
        self.score_color = (100, 200, 100)
        self.cursor_color = (255, 200, 50)
        self.text_color = (200, 200, 200)

    def _step_x(self, step: int) -> int:
        return self.x + int((step / self.total_steps) * self.width)

    def point_to_index(self, px: int, py: int) -> int:
        """Convert screen point to step index, or -1 outside the bar."""
        if not (self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height):
            return -1
        idx = int(((px - self.x) / self.width) * self.total_steps)
        return max(0, min(self.total_steps, idx))

    def handle_event(self, event) -> Optional[int]:
        """Returns the step to seek to, or None."""
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            idx = self.point_to_index(*event.pos)
            if idx >= 0:
                self.dragging = True
                return idx
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self.dragging = False
        elif event.type == pygame.MOUSEMOTION:
            self.hover_idx = self.point_to_index(*event.pos)
            if self.dragging and self.hover_idx >= 0:
                return self.hover_idx
        return None

    def render(self, screen: "pygame.Surface", font: "pygame.font.Font", current_idx: int) -> None:
        bg_rect = pygame.Rect(self.x - 5, self.y - 5, self.width + 10, self.height + 10)
        pygame.draw.rect(screen, self.bg_color, bg_rect)
        pygame.draw.rect(screen, self.border_color, bg_rect, 1)

        mid = self.y + (self.height - 15) // 2
        for step in self.jump_steps:
            x = self._step_x(step)
            pygame.draw.line(screen, self.jump_color, (x, mid), (x, mid + 10), 1)
        for step in self.score_steps:
            x = self._step_x(step)
            pygame.draw.line(screen, self.score_color, (x, self.y), (x, mid - 2), 2)

        cursor_x = self._step_x(current_idx)
        pygame.draw.line(screen, self.cursor_color,
                         (cursor_x, self.y), (cursor_x, self.y + self.height - 15), 2)

        label_y = self.y + self.height - 12
        screen.blit(font.render("0", True, self.text_color), (self.x, label_y))
        end_text = font.render(str(self.total_steps), True, self.text_color)
        screen.blit(end_text, (self.x + self.width - end_text.get_width(), label_y))
        pos_text = font.render(f"{current_idx}/{self.total_steps}", True, self.cursor_color)
        screen.blit(pos_text, (self.x + self.width // 2 - pos_text.get_width() // 2, label_y))


# -----------------------------------------------------------------------------
# Replay Viewer
# -----------------------------------------------------------------------------
def apply_action(game: CoreGame, action: int) -> None:
    """One recorded env step: optional jump, then a tick."""
    if action:
        game.jump()
    game.tick()


def rebuild_game_to_step(
    config: GameConfig,
    seed: Optional[int],
    actions: List[int],
    target_step: int
) -> CoreGame:
    """
    Rebuild game state by replaying actions up to target_step.

    The simulation is deterministic, so this reproduces the recording
    exactly.
    """
    game = CoreGame(config=config, seed=seed)
    game.start()

    for action in actions[:target_step]:
        if game.is_over:
            break
        apply_action(game, action)

    return game


def view_replay(
    replay_path: str,
    config: Optional[GameConfig] = None,
    speed: float = 1.0,
    fps: int = 60
) -> None:
    """
    View a recorded replay with a timeline.

    Args:
        replay_path: Path to replay JSON file.
        config: Config the replay was recorded with. Uses default if None.
        speed: Playback speed multiplier (1.0 = one step per frame).
        fps: Display frame rate.
    """
    if not PYGAME_AVAILABLE:
        print("Error: pygame is required for replay viewer.")
        print("Install with: pip install pygame")
        return

    if config is None:
        config = load_config()

    replay = load_replay(replay_path)
    seed = replay.get("seed")
    actions = [int(a) for a in replay.get("actions", [])]
    scores = replay.get("scores", [])
    termination_reason = replay.get("termination_reason", "unknown")

    if not actions:
        print("Error: Replay contains no actions")
        return

    print(f"Replay: {replay_path}")
    print(f"Seed: {seed}")
    print(f"Agent: {replay.get('agent', 'unknown')}")
    print(f"Actions: {len(actions)}")
    print(f"Final score: {replay.get('final_score', 0)}")
    print(f"Game ended: {termination_reason}")

    current_hash = compute_config_hash(config)
    replay_hash = replay.get("config_hash")
    if replay_hash is not None and replay_hash != current_hash:
        print()
        print("WARNING: Replay was recorded with different game config!")
        print(f"  Replay config hash: {replay_hash}")
        print(f"  Current config hash: {current_hash}")
        print("  Playback will not match the recorded scores.")
    print()

    window_width = int(config.arena.viewport_width)
    game_area_height = int(round(config.arena.height / 0.7))
    window_height = game_area_height + TIMELINE_HEIGHT + TIMELINE_MARGIN * 2 + 40

    pygame.init()
    screen = pygame.display.set_mode((window_width, window_height))
    pygame.display.set_caption(f"Replay: {Path(replay_path).name}")
    clock = pygame.time.Clock()
    font = pygame.font.Font(None, 22)
    font_large = pygame.font.Font(None, 28)

    renderer = FlappyRenderer(config, window_width, game_area_height)
    renderer.show_instructions = False
    game_surface = pygame.Surface((window_width, game_area_height))

    timeline = Timeline(
        x=TIMELINE_MARGIN,
        y=window_height - TIMELINE_HEIGHT - TIMELINE_MARGIN // 2,
        width=window_width - TIMELINE_MARGIN * 2,
        height=TIMELINE_HEIGHT,
        actions=actions,
        scores=scores
    )

    game = rebuild_game_to_step(config, seed, actions, 0)
    action_idx = 0
    paused = True
    playback_speed = speed
    step_budget = 0.0

    def seek_to(target_idx: int) -> None:
        nonlocal game, action_idx
        action_idx = max(0, min(len(actions), target_idx))
        game = rebuild_game_to_step(config, seed, actions, action_idx)

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            new_idx = timeline.handle_event(event)
            if new_idx is not None:
                seek_to(new_idx)
                paused = True

            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_SPACE:
                    paused = not paused
                elif event.key == pygame.K_RIGHT:
                    if action_idx < len(actions) and not game.is_over:
                        apply_action(game, actions[action_idx])
                        action_idx += 1
                    paused = True
                elif event.key == pygame.K_LEFT:
                    seek_to(action_idx - 1)
                    paused = True
                elif event.key == pygame.K_HOME:
                    seek_to(0)
                    paused = True
                elif event.key == pygame.K_END:
                    seek_to(len(actions))
                    paused = True
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
                    playback_speed = min(playback_speed * 1.5, 10.0)
                elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
                    playback_speed = max(playback_speed / 1.5, 0.1)

        if not paused:
            step_budget += playback_speed
            while step_budget >= 1.0 and action_idx < len(actions) and not game.is_over:
                apply_action(game, actions[action_idx])
                action_idx += 1
                step_budget -= 1.0
            if action_idx >= len(actions) or game.is_over:
                paused = True
                step_budget = 0.0

        screen.fill((20, 20, 25))
        renderer.render(game_surface, game.get_render_data())
        screen.blit(game_surface, (0, 0))

        status_y = game_area_height + 5
        if action_idx >= len(actions) or game.is_over:
            status = f"GAME OVER: {termination_reason.replace('_', ' ').title()}"
            status_color = (255, 100, 100)
        elif paused:
            status = "PAUSED"
            status_color = (255, 200, 100)
        else:
            status = f"PLAYING ({playback_speed:.1f}x)"
            status_color = (100, 255, 100)
        screen.blit(font_large.render(status, True, status_color), (TIMELINE_MARGIN, status_y))

        score_text = font_large.render(f"Score: {game.score}", True, (255, 255, 255))
        screen.blit(score_text, (window_width - score_text.get_width() - TIMELINE_MARGIN, status_y))

        timeline.render(screen, font, action_idx)

        pygame.display.flip()
        clock.tick(fps)

    pygame.quit()


def main():
    parser = argparse.ArgumentParser(
        description="View a recorded Flappy Arena replay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Controls:
  SPACE       Play/Pause
  LEFT/RIGHT  Step backward/forward
  HOME/END    Jump to start/end
  Click       Seek on timeline
  +/-         Speed up/slow down
  ESC         Quit
        """
    )
    parser.add_argument("replay", type=str, help="Path to replay JSON file")
    parser.add_argument("--preset", type=str, default=None,
                        help="Bundled tuning the replay was recorded with")
    parser.add_argument("--speed", type=float, default=1.0, help="Initial playback speed")

    args = parser.parse_args()

    config = load_preset(args.preset) if args.preset else load_config()
    view_replay(replay_path=args.replay, config=config, speed=args.speed)

    return 0


if __name__ == "__main__":
    sys.exit(main())
