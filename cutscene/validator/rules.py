"""
Validation rule tables.
"""

from typing import Dict, List


# Params that must be non-empty, per node type. Missing values are warnings:
# the engine still runs the action with its own defaults.
REQUIRED_PARAMS: Dict[str, List[str]] = {
    "dialogue": [],
    "move": ["target"],
    "set_position": ["target"],
    "actor_create": ["key"],
    "actor_destroy": ["target"],
    "animate": ["target"],
    "camera_track": ["target"],
    "camera_pan": ["x", "y"],
    "set_depth": ["target"],
    "set_facing": ["target"],
    "branch": ["condition"],
    # run_function is checked separately: `function` or legacy `function_name`.
    "run_function": [],
    "follow_path": ["target"],
}

# Node types exempt from the single-output rule.
SINGLE_OUTPUT_EXEMPT = ("start", "end", "branch", "parallel_start", "parallel_join")
