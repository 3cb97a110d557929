"""
Flappy Arena Package
====================

This package contains the core game logic, physics, pipe generation,
collision/scoring and evaluation systems for the Flappy Arena. It controls:

- Bird physics (gravity and jump impulse)
- Gap sequence generation
- Pipe spawning and culling
- Collision and scoring rules
- Game phases (not started, running, paused, over)

All tunable parameters are in game_config.yaml; alternative tunings live in
presets/.
"""
