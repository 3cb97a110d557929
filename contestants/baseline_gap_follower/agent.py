"""
Baseline Gap Follower - Jumps whenever the bird is about to sink below the gap.

This is a simple heuristic agent that reads the next pipe's gap from the
observation and keeps the bird's bottom edge just above the gap bottom.

This serves as:
1. A working example of how to read observations and return actions
2. A baseline benchmark for comparison
3. A verification that the environment API works correctly

Strategy:
- Aim at the next pipe's gap, or the middle of the arena before one exists
- Look two ticks ahead using the current fall speed
- Jump if the bird's bottom edge would drop into the safety margin
"""

from typing import Any, Dict, Optional

# Gap height assumed when no pipe has spawned yet
DEFAULT_GAP_HEIGHT = 90.0


class FlappyAgent:
    """
    Keeps the bird hovering just above the bottom of the next gap.
    """

    def __init__(self, margin: float = 10.0, lookahead: float = 2.0, debug: bool = False):
        """
        Initialize the agent.

        Args:
            margin: Distance above the gap bottom that triggers a jump.
            lookahead: Ticks of current velocity to anticipate.
            debug: If True, print decisions to stdout.
        """
        self.margin = margin
        self.lookahead = lookahead
        self.debug = debug

    def reset(self, seed: Optional[int] = None) -> None:
        """The agent is stateless."""

    def act(self, observation: Dict[str, Any]) -> int:
        """
        Decide whether to jump.

        Args:
            observation: Observation dict from FlappyEnv.

        Returns:
            1 to jump, 0 otherwise.
        """
        bird_bottom = float(observation["bird_y"]) + float(observation["bird_height"])
        velocity = float(observation["bird_velocity"])

        if int(observation["next_pipe_present"]):
            gap_bottom = float(observation["next_pipe_gap_bottom"])
        else:
            gap_bottom = (float(observation["arena_height"]) + DEFAULT_GAP_HEIGHT) / 2

        predicted = bird_bottom + max(velocity, 0.0) * self.lookahead
        jump = predicted > gap_bottom - self.margin

        if self.debug:
            print(f"bottom={bird_bottom:.1f} v={velocity:.2f} gap_bottom={gap_bottom:.1f} "
                  f"-> {'JUMP' if jump else 'fall'}")

        return int(jump)


_default_agent = FlappyAgent()


def act(observation: Dict[str, Any]) -> int:
    """Standalone act function (alternative to class-based agent)."""
    return _default_agent.act(observation)
