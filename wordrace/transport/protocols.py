from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field


# =========================
# Shared enums / literals
# =========================

Phase = Literal["waiting", "starting", "playing", "round_end", "finished"]
ErrorCode = Literal["NOT_FOUND", "UNAUTHORIZED", "BAD_REQUEST", "INTERNAL_ERROR", "BAD_MESSAGE"]

Username = Annotated[str, Field(min_length=1, max_length=24)]


# =========================
# Incoming (Client -> Server)
# =========================

class InBase(BaseModel):
    type: str


class InConfigPatch(BaseModel):
    """Partial config; omitted fields keep their current value."""
    rounds_count: Optional[int] = None
    supported_categories: Optional[List[str]] = None
    excluded_letters: Optional[List[str]] = None


class InAnswer(BaseModel):
    category: str = Field(min_length=1, max_length=40)
    word: str = Field(default="", max_length=80)
    # fraction of the category timer still left when answered
    time_left: float = Field(default=0.0, allow_inf_nan=False)


# ---- Lifecycle ----

class InCreateRoom(InBase):
    type: Literal["create_room"] = "create_room"
    username: Username
    avatar: Optional[str] = None


class InJoin(InBase):
    type: Literal["join"] = "join"
    join_code: str = Field(min_length=1, max_length=12)
    username: Username
    avatar: Optional[str] = None


class InRejoin(InBase):
    type: Literal["rejoin"] = "rejoin"
    join_code: str = Field(min_length=1, max_length=12)
    username: Username
    avatar: Optional[str] = None


class InLeave(InBase):
    type: Literal["leave"] = "leave"
    room_id: str
    username: Username


class InRoomState(InBase):
    type: Literal["room_state"] = "room_state"
    room_id: str
    username: Optional[str] = None


# ---- Chat ----

class InChatMessage(InBase):
    type: Literal["chat_message"] = "chat_message"
    room_id: str
    username: Username
    message: str


# ---- Lobby ----

class InUpdateConfig(InBase):
    type: Literal["update_config"] = "update_config"
    room_id: str
    username: Username
    config: InConfigPatch


class InStartGame(InBase):
    type: Literal["start_game"] = "start_game"
    room_id: str
    username: Username
    config: Optional[InConfigPatch] = None


# ---- Game ----

class InSubmitAnswers(InBase):
    type: Literal["submit_answers"] = "submit_answers"
    room_id: str
    username: Username
    answers: List[InAnswer] = Field(default_factory=list, max_length=10)


class InRoundResults(InBase):
    type: Literal["round_results"] = "round_results"
    room_id: str
    username: Username
    round_number: Optional[int] = None  # defaults to the current round


class InNextRound(InBase):
    type: Literal["next_round"] = "next_round"
    room_id: str
    username: Username


class InEndGame(InBase):
    type: Literal["end_game"] = "end_game"
    room_id: str
    username: Username


class InGameSummary(InBase):
    type: Literal["game_summary"] = "game_summary"
    room_id: str
    username: Username


IncomingMessage = Union[
    InCreateRoom,
    InJoin,
    InRejoin,
    InLeave,
    InRoomState,
    InChatMessage,
    InUpdateConfig,
    InStartGame,
    InSubmitAnswers,
    InRoundResults,
    InNextRound,
    InEndGame,
    InGameSummary,
]


# =========================
# Outgoing (Server -> Client)
# =========================

class OutBase(BaseModel):
    type: str


class OutRoomEvent(OutBase):
    """Anything scoped to one room carries its id so transports can route it."""
    room_id: str


class OutError(OutBase):
    type: Literal["error"] = "error"
    code: ErrorCode
    reason: str = ""
    message: str


class OutRoomSnapshot(OutRoomEvent):
    type: Literal["room_snapshot"] = "room_snapshot"
    room: Dict[str, Any]
    players: List[Dict[str, Any]]
    current_round: Optional[Dict[str, Any]] = None
    chat: List[Dict[str, Any]] = Field(default_factory=list)
    winner: Optional[Dict[str, Any]] = None
    you: Optional[str] = None


class OutRoomCreated(OutRoomEvent):
    type: Literal["room_created"] = "room_created"
    join_code: str
    host_id: str


class OutPlayerJoined(OutRoomEvent):
    type: Literal["player_joined"] = "player_joined"
    player: Dict[str, Any]
    player_count: int


class OutPlayerLeft(OutRoomEvent):
    type: Literal["player_left"] = "player_left"
    username: str
    host_id: str
    player_count: int


class OutPlayerRejoined(OutRoomEvent):
    type: Literal["player_rejoined"] = "player_rejoined"
    username: str


class OutPlayerDisconnected(OutRoomEvent):
    type: Literal["player_disconnected"] = "player_disconnected"
    username: str


class OutConfigUpdated(OutRoomEvent):
    type: Literal["config_updated"] = "config_updated"
    config: Dict[str, Any]


class OutGameStarted(OutRoomEvent):
    type: Literal["game_started"] = "game_started"
    phase: Phase = "starting"
    total_rounds: int
    started_at: int


class OutRoundStarted(OutRoomEvent):
    type: Literal["round_started"] = "round_started"
    phase: Phase = "playing"
    round: Dict[str, Any]
    total_rounds: int


class OutAnswerProgress(OutRoomEvent):
    type: Literal["answer_progress"] = "answer_progress"
    username: str
    submitted: int
    total: int
    all_submitted: bool


class OutRoundEnded(OutRoomEvent):
    type: Literal["round_ended"] = "round_ended"
    round_number: int
    letter: str
    results: List[Dict[str, Any]]
    leaderboard: List[Dict[str, Any]]
    is_last_round: bool


class OutGameFinished(OutRoomEvent):
    type: Literal["game_finished"] = "game_finished"
    winner: Optional[Dict[str, Any]] = None
    leaderboard: List[Dict[str, Any]]


class OutGameEnded(OutRoomEvent):
    type: Literal["game_ended"] = "game_ended"
    ended_by: str


class OutRoomDeleted(OutRoomEvent):
    type: Literal["room_deleted"] = "room_deleted"
    reason: str


class OutChatMessage(OutRoomEvent):
    type: Literal["chat_message"] = "chat_message"
    message: Dict[str, Any]


# ---- Caller-only results ----

class OutLeftRoom(OutRoomEvent):
    type: Literal["left_room"] = "left_room"
    username: str


class OutChatSent(OutRoomEvent):
    type: Literal["chat_sent"] = "chat_sent"
    message_id: str


class OutSubmitResult(OutRoomEvent):
    type: Literal["submit_result"] = "submit_result"
    round_number: int
    results: List[Dict[str, Any]]
    round_score: int
    total_score: int
    all_submitted: bool


class OutRoundResults(OutRoomEvent):
    type: Literal["round_results"] = "round_results"
    round_number: int
    letter: str
    categories: List[str]
    results: List[Dict[str, Any]]


class OutGameSummary(OutRoomEvent):
    type: Literal["game_summary"] = "game_summary"
    summary: Dict[str, Any]


OutgoingEvent = Union[
    OutError,
    OutRoomSnapshot,
    OutRoomCreated,
    OutPlayerJoined,
    OutPlayerLeft,
    OutPlayerRejoined,
    OutPlayerDisconnected,
    OutConfigUpdated,
    OutGameStarted,
    OutRoundStarted,
    OutAnswerProgress,
    OutRoundEnded,
    OutGameFinished,
    OutGameEnded,
    OutRoomDeleted,
    OutChatMessage,
    OutLeftRoom,
    OutChatSent,
    OutSubmitResult,
    OutRoundResults,
    OutGameSummary,
]


# =========================
# Parser helpers
# =========================

_INCOMING_BY_TYPE = {
    "create_room": InCreateRoom,
    "join": InJoin,
    "rejoin": InRejoin,
    "leave": InLeave,
    "room_state": InRoomState,
    "chat_message": InChatMessage,
    "update_config": InUpdateConfig,
    "start_game": InStartGame,
    "submit_answers": InSubmitAnswers,
    "round_results": InRoundResults,
    "next_round": InNextRound,
    "end_game": InEndGame,
    "game_summary": InGameSummary,
}


def parse_incoming(payload: Dict[str, Any]) -> IncomingMessage:
    """
    Convert raw dict -> validated message model.
    Raises ValueError for a missing or unknown type,
    ValidationError for a malformed body.
    """
    t = payload.get("type") if isinstance(payload, dict) else None
    if not isinstance(t, str):
        raise ValueError("Missing/invalid type")

    cls = _INCOMING_BY_TYPE.get(t)
    if cls is None:
        raise ValueError(f"Unknown message type: {t}")

    return cls.model_validate(payload)
