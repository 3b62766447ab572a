from __future__ import annotations

from typing import Any, Dict, List, Optional

from wordrace.store.models import PlayerStore, RoomStore, WinnerStore


def rank_players(room: RoomStore) -> List[PlayerStore]:
    """Highest score first; earlier joiners win ties."""
    return sorted(room.players.values(), key=lambda p: (-p.current_score, p.joined_at))


def pick_winner(room: RoomStore) -> Optional[WinnerStore]:
    ranked = rank_players(room)
    if not ranked:
        return None
    top = ranked[0]
    return WinnerStore(username=top.username, score=top.current_score)


def round_score(player: PlayerStore, round_number: int) -> int:
    return sum(a.score for a in player.answers if a.round_number == round_number)


def leaderboard(room: RoomStore) -> List[Dict[str, Any]]:
    return [
        {"rank": i, "username": p.username, "avatar": p.avatar, "score": p.current_score}
        for i, p in enumerate(rank_players(room), start=1)
    ]


def round_results(room: RoomStore, round_number: int) -> List[Dict[str, Any]]:
    """Per-player answers for one round, best round score first (join order on ties)."""
    rows = []
    for p in room.players.values():
        answers = [a for a in p.answers if a.round_number == round_number]
        rows.append(
            {
                "username": p.username,
                "avatar": p.avatar,
                "answers": [
                    {
                        "category": a.category,
                        "word": a.word,
                        "valid": a.valid,
                        "score": a.score,
                        "time_left": a.time_left,
                    }
                    for a in answers
                ],
                "round_score": sum(a.score for a in answers),
                "total_score": p.current_score,
            }
        )
    rows.sort(key=lambda r: -r["round_score"])
    return rows
