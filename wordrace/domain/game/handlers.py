from __future__ import annotations

from wordrace.domain.game.handlers_submit import handle_submit_answers
from wordrace.domain.game.handlers_round import handle_round_results, handle_next_round
from wordrace.domain.game.handlers_end import handle_end_game
from wordrace.domain.game.handlers_summary import handle_game_summary

__all__ = [
    "handle_submit_answers",
    "handle_round_results",
    "handle_next_round",
    "handle_end_game",
    "handle_game_summary",
]
