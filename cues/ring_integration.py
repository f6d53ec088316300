"""
Registry integration for cue masters.

A cue master is registered in the ring like any other service, under
``CueMaster`` (aliased as ``RingCueMaster``) and a tag. Removing it from
the ring disposes it, which cancels all of its subscriptions.
"""
from __future__ import annotations

from typing import Any, Optional, Type

from config import get_config
from cues.cue_master import C, CueHandler, CueMaster, CueSubscription, RingCueMaster
from ring.container import CircusRing, get_ring


def _effective_tag(tag: Optional[str]) -> str:
    return tag if tag is not None else get_config().ring.cue_master_tag


def get_cue_master(
    ring: Optional[CircusRing] = None,
    tag: Optional[str] = None,
    replace: bool = False,
) -> CueMaster:
    """
    Return the cue master registered under ``tag``, registering one if needed.

    With ``replace=True`` a fresh RingCueMaster takes the slot and the old
    one is disposed.
    """
    if ring is None:
        ring = get_ring()
    effective_tag = _effective_tag(tag)
    if not replace and ring.is_registered(CueMaster, effective_tag):
        return ring.resolve(CueMaster, effective_tag)
    return ring.register_instance(
        CueMaster,
        RingCueMaster(),
        tag=effective_tag,
        alias=RingCueMaster,
        replace=replace,
    )


def on_cue(
    cue_type: Type[C],
    handler: CueHandler,
    ring: Optional[CircusRing] = None,
    tag: Optional[str] = None,
) -> CueSubscription[C]:
    """Listen for ``cue_type`` on the ring's cue master."""
    return get_cue_master(ring, tag).listen(cue_type, handler)


def send_cue(cue: Any, ring: Optional[CircusRing] = None, tag: Optional[str] = None) -> bool:
    """Send a cue through the ring's cue master."""
    return get_cue_master(ring, tag).send_cue(cue)


def dispose_cue_master(ring: Optional[CircusRing] = None, tag: Optional[str] = None) -> bool:
    """Remove and dispose the cue master under ``tag``; returns whether one was registered."""
    if ring is None:
        ring = get_ring()
    effective_tag = _effective_tag(tag)
    if not ring.is_registered(CueMaster, effective_tag):
        return False
    return ring.remove(CueMaster, effective_tag)
