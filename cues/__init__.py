"""
CircusRing - Cue Bus

Typed in-process publish/subscribe, usually living inside the registry.

Usage:
    from cues import Cue, on_cue, send_cue

    @dataclass
    class UserLoggedIn(Cue):
        user_id: str

    subscription = on_cue(UserLoggedIn, handle_login, ring=ring)
    send_cue(UserLoggedIn(user_id="42"), ring=ring)
"""

from cues.cue_master import (
    Cue,
    CueMaster,
    CueSubscription,
    RingCueMaster,
)
from cues.ring_integration import (
    dispose_cue_master,
    get_cue_master,
    on_cue,
    send_cue,
)

__all__ = [
    "Cue",
    "CueMaster",
    "CueSubscription",
    "RingCueMaster",
    "get_cue_master",
    "on_cue",
    "send_cue",
    "dispose_cue_master",
]
