"""Pure score → percentage → level/personality mapping."""

from __future__ import annotations

MAX_LEVEL = 4

# (exclusive lower bound, name, description), checked top to bottom.
# A percentage of exactly 0 is handled separately.
_PERSONALITIES = (
    (75, "LeeRoy Jenkins", "Do your thang, LeeRoy!"),
    (50, "Joan de Arc", "She did WHAT?"),
    (25, "Jimmy Carter", "Walking into a failed nuclear reactor? That's just crazy."),
    (0, "Allan Pollock", "Borrowed a fighter jet, buzzed the Tower Bridge, and lived to tell the tale"),
)
_ZERO = ("Dr. Fauci", "Measured safety. YOLO FAIL!")


def percentage(score: int, max_score: int) -> int:
    """Return ``floor(100 * score / max_score)``, or 0 when nothing was scored."""
    if max_score <= 0 or score <= 0:
        return 0
    return (100 * score) // max_score


def level(perc: int) -> int:
    """Map a percentage to a YOLO level.

    Deliberately coarse: only a perfect 100% earns MAX_LEVEL, anything short
    of it is level 0.
    """
    return (perc // 100) * MAX_LEVEL


def personality(perc: int) -> tuple[str, str]:
    """Return ``(name, description)`` for a percentage."""
    if perc <= 0:
        return _ZERO
    for bound, name, desc in _PERSONALITIES:
        if perc > bound:
            return name, desc
    return _ZERO


def label(perc: int) -> str:
    return personality(perc)[0]
