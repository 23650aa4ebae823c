# normalize.py
# Maps backend vocabularies onto the canonical Route / Instruction schema.

import logging
from typing import Iterable, List, Optional

from ..models import Instruction, Maneuver

logger = logging.getLogger(__name__)


# Checked in this order; the first keyword found in the token wins.
_KEYWORDS = (
    ("left",       Maneuver.TURN_LEFT),
    ("right",      Maneuver.TURN_RIGHT),
    ("straight",   Maneuver.GO_STRAIGHT),
    ("roundabout", Maneuver.ROUNDABOUT),
    ("uturn",      Maneuver.U_TURN),
)


def normalize_maneuver(token: Optional[str]) -> Maneuver:
    """
    Map a backend maneuver token to the closed Maneuver set.

    Examples: "TURN_LEFT" -> TURN_LEFT, "KEEP_RIGHT" -> TURN_RIGHT,
    "MAKE_UTURN" -> U_TURN, "DEPART" -> DEPART, "WAYPOINT_REACHED" -> UNKNOWN.
    """
    if not token:
        return Maneuver.UNKNOWN
    m = token.strip().lower()
    for keyword, maneuver in _KEYWORDS:
        if keyword in m:
            return maneuver
    if m == "depart":
        return Maneuver.DEPART
    if m == "arrive":
        return Maneuver.ARRIVE
    return Maneuver.UNKNOWN


def ordered_instructions(candidates: Iterable[Instruction], point_count: int,
                         provider: str = "") -> List[Instruction]:
    """
    Keep only instructions that index into the geometry in strictly
    increasing order.

    Args:
        candidates:  Instructions as parsed from the backend, in step order.
        point_count: Number of coordinates of the route geometry.
        provider:    Backend name, for logging.

    Returns:
        Filtered instruction list.
    """
    kept: List[Instruction] = []
    dropped = 0
    last_index = -1
    for instr in candidates:
        if not 0 <= instr.route_index < point_count or instr.route_index <= last_index:
            dropped += 1
            continue
        kept.append(instr)
        last_index = instr.route_index
    if dropped:
        logger.debug(f"[{provider}] Dropped {dropped} instructions without a usable route index.")
    return kept
