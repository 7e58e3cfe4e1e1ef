"""Learning path synthesis over knowledge graphs."""

from atlas.paths.synthesizer import (
    DIFFICULTY_LEVELS,
    PathSynthesizer,
    difficulty_level,
    resolve_target_difficulty,
)


__all__ = [
    "DIFFICULTY_LEVELS",
    "PathSynthesizer",
    "difficulty_level",
    "resolve_target_difficulty",
]
