from __future__ import annotations

import string
from typing import List, Optional, Tuple

from wordrace.store.models import RoomConfig, RoomStore
from wordrace.domain.common.types import MAX_ROUNDS, MIN_ROUNDS
from wordrace.transport.protocols import InConfigPatch, OutError


def is_member(room: RoomStore, username: Optional[str]) -> bool:
    return bool(username) and username in room.players


def is_host(room: RoomStore, username: Optional[str]) -> bool:
    """Check if username is the room's current host."""
    return is_member(room, username) and room.host_id == username


def room_not_found() -> OutError:
    return OutError(code="NOT_FOUND", reason="room_not_found", message="Room not found")


def not_a_member() -> OutError:
    return OutError(code="UNAUTHORIZED", reason="not_a_member", message="You are not in this room")


def not_host(action: str) -> OutError:
    return OutError(code="UNAUTHORIZED", reason="not_host", message=f"Only the host can {action}")


def clean_username(username: str) -> str:
    return " ".join((username or "").split())


def merge_config(current: RoomConfig, patch: Optional[InConfigPatch]) -> RoomConfig:
    """Apply a partial patch on top of the current config (normalising as we go)."""
    merged = current.model_copy(deep=True)
    if patch is None:
        return merged
    if patch.rounds_count is not None:
        merged.rounds_count = patch.rounds_count
    if patch.supported_categories is not None:
        seen: List[str] = []
        for c in patch.supported_categories:
            name = (c or "").strip().lower()
            if name not in seen:
                seen.append(name)
        merged.supported_categories = seen
    if patch.excluded_letters is not None:
        letters: List[str] = []
        for raw in patch.excluded_letters:
            letter = (raw or "").strip().upper()
            if letter not in letters:
                letters.append(letter)
        merged.excluded_letters = letters
    return merged


def validate_config(cfg: RoomConfig) -> Tuple[bool, str]:
    """Returns (ok, message)."""
    if not (MIN_ROUNDS <= cfg.rounds_count <= MAX_ROUNDS):
        return False, f"rounds_count must be between {MIN_ROUNDS} and {MAX_ROUNDS}"
    if not cfg.supported_categories:
        return False, "At least one category is required"
    if any(not c for c in cfg.supported_categories):
        return False, "Category names cannot be blank"
    for letter in cfg.excluded_letters:
        if len(letter) != 1 or letter not in string.ascii_uppercase:
            return False, f"Invalid excluded letter: {letter!r}"
    return True, ""
