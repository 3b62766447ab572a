from __future__ import annotations

from typing import Any, Dict, List, Optional

from wordrace.store.models import AnswerRecord, PlayerStore, RoomStore
from wordrace.domain.common.ranking import rank_players, round_score


def _pct(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def _category_counts(answers: List[AnswerRecord]) -> Dict[str, Dict[str, int]]:
    counts: Dict[str, Dict[str, int]] = {}
    for a in answers:
        c = counts.setdefault(a.category, {"correct": 0, "total": 0})
        c["total"] += 1
        if a.valid:
            c["correct"] += 1
    return counts


def _longest_streak(answers: List[AnswerRecord]) -> int:
    best = current = 0
    for a in answers:
        current = current + 1 if a.valid else 0
        best = max(best, current)
    return best


def player_summary(p: PlayerStore, total_rounds: int) -> Dict[str, Any]:
    round_scores = [round_score(p, n) for n in range(1, total_rounds + 1)]
    valid = sum(1 for a in p.answers if a.valid)
    total = len(p.answers)
    avg_time = sum(a.time_left for a in p.answers) / total if total else 0.0

    return {
        "username": p.username,
        "avatar": p.avatar,
        "total_score": p.current_score,
        "round_scores": round_scores,
        "correct_answers": valid,
        "invalid_answers": total - valid,
        "total_answers": total,
        "accuracy": _pct(valid, total),
        "average_time": round(avg_time, 2),
        "longest_streak": _longest_streak(p.answers),
        "average_score": round(sum(round_scores) / len(round_scores)) if round_scores else 0,
        "best_round": max(round_scores) if round_scores else 0,
        "worst_round": min(round_scores) if round_scores else 0,
        "category_breakdown": [
            {"category": cat, "correct": c["correct"], "total": c["total"], "accuracy": _pct(c["correct"], c["total"])}
            for cat, c in _category_counts(p.answers).items()
        ],
    }


def _round_breakdown(room: RoomStore) -> List[Dict[str, Any]]:
    out = []
    for rnd in room.rounds:
        rows = []
        for p in room.players.values():
            answers = [a for a in p.answers if a.round_number == rnd.round_number]
            rows.append(
                {
                    "username": p.username,
                    "avatar": p.avatar,
                    "round_score": sum(a.score for a in answers),
                    "answers": [
                        {"category": a.category, "word": a.word, "valid": a.valid, "score": a.score} for a in answers
                    ],
                }
            )
        rows.sort(key=lambda r: -r["round_score"])
        out.append(
            {
                "round_number": rnd.round_number,
                "letter": rnd.letter,
                "categories": rnd.category_names(),
                "players": rows,
            }
        )
    return out


def _round_leaderboards(room: RoomStore) -> List[Dict[str, Any]]:
    out = []
    for rnd in room.rounds:
        board = [
            {"username": p.username, "round_score": round_score(p, rnd.round_number)}
            for p in room.players.values()
        ]
        board.sort(key=lambda r: -r["round_score"])
        out.append({"round_number": rnd.round_number, "letter": rnd.letter, "leaderboard": board})
    return out


def _fastest_answer(room: RoomStore) -> Optional[Dict[str, Any]]:
    fastest = None
    best = -1.0
    for p in room.players.values():
        for a in p.answers:
            if a.valid and a.time_left > best:
                best = a.time_left
                fastest = {"username": p.username, "time": a.time_left, "word": a.word, "category": a.category}
    return fastest


def _category_extremes(room: RoomStore):
    all_answers = [a for p in room.players.values() for a in p.answers]
    hardest = easiest = None
    lo, hi = 101.0, -1.0
    for cat, c in _category_counts(all_answers).items():
        acc = c["correct"] / c["total"] * 100
        entry = {"name": cat, "accuracy": round(acc), "total_attempts": c["total"]}
        if acc < lo:
            lo, hardest = acc, entry
        if acc > hi:
            hi, easiest = acc, entry
    return hardest, easiest


def build_summary(room: RoomStore) -> Dict[str, Any]:
    """
    End-of-game report: ranked players, per-round boards, aggregate stats.
    Ranking uses the same tie-break as the winner.
    """
    total_rounds = len(room.rounds)
    ranked = rank_players(room)
    players = [dict(player_summary(p, total_rounds), rank=i) for i, p in enumerate(ranked, start=1)]

    all_round_scores = [round_score(p, n) for p in room.players.values() for n in range(1, total_rounds + 1)]
    total_answers = sum(len(p.answers) for p in room.players.values())
    valid_answers = sum(1 for p in room.players.values() for a in p.answers if a.valid)

    if room.winner is not None:
        w = room.players.get(room.winner.username)
        winner = {"username": room.winner.username, "avatar": w.avatar if w else "", "score": room.winner.score}
    elif ranked:
        winner = {"username": ranked[0].username, "avatar": ranked[0].avatar, "score": ranked[0].current_score}
    else:
        winner = None

    hardest, easiest = _category_extremes(room)
    return {
        "room_id": room.room_id,
        "total_rounds": total_rounds,
        "winner": winner,
        "players": players,
        "rounds": _round_leaderboards(room),
        "round_by_round": _round_breakdown(room),
        "stats": {
            "total_answers": total_answers,
            "valid_answers": valid_answers,
            "invalid_answers": total_answers - valid_answers,
            "average_score": round(sum(all_round_scores) / len(all_round_scores)) if all_round_scores else 0,
            "highest_round_score": max(all_round_scores) if all_round_scores else 0,
            "lowest_round_score": min(all_round_scores) if all_round_scores else 0,
        },
        "game_stats": {
            "total_words": total_answers,
            "fastest_answer": _fastest_answer(room),
            "hardest_category": hardest,
            "easiest_category": easiest,
        },
    }
