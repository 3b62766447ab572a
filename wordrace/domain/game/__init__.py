from __future__ import annotations

from .handlers import (
    handle_submit_answers,
    handle_round_results,
    handle_next_round,
    handle_end_game,
    handle_game_summary,
)

__all__ = [
    "handle_submit_answers",
    "handle_round_results",
    "handle_next_round",
    "handle_end_game",
    "handle_game_summary",
]
