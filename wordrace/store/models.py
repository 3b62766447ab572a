from __future__ import annotations

from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field


Phase = Literal["waiting", "starting", "playing", "round_end", "finished"]
Role = Literal["host", "player"]
PlayerStatus = Literal["active", "disconnected"]
SessionStatus = Literal["active", "completed", "abandoned", "cancelled"]

DEFAULT_CATEGORIES = ["name", "place", "animal", "food"]


class AnswerRecord(BaseModel):
    round_number: int
    letter: str
    word: str
    category: str
    time_left: float = 0.0  # fraction of the category timer left, 0..1
    score: int = 0
    valid: bool = False


class PlayerStore(BaseModel):
    username: str
    avatar: str = ""
    role: Role = "player"
    is_guest: bool = True
    status: PlayerStatus = "active"
    current_score: int = 0
    answers: List[AnswerRecord] = Field(default_factory=list)
    joined_at: int
    last_activity: int
    conn_id: Optional[str] = None  # transport handle, may be stale


class CategorySpec(BaseModel):
    name: str
    display_name: str
    time_limit: int = 30


class RoundStore(BaseModel):
    round_number: int
    letter: str
    categories: List[CategorySpec]
    submissions: Dict[str, bool] = Field(default_factory=dict)
    started_at: Optional[int] = None
    ended_at: Optional[int] = None

    def category_names(self) -> List[str]:
        return [c.name for c in self.categories]


class RoomConfig(BaseModel):
    rounds_count: int = 4
    supported_categories: List[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    excluded_letters: List[str] = Field(default_factory=list)


class ChatMessage(BaseModel):
    message_id: str
    username: str
    message: str
    timestamp: int


class WinnerStore(BaseModel):
    username: str
    score: int


class RoomStore(BaseModel):
    room_id: str
    join_code: str
    host_id: str
    phase: Phase = "waiting"
    players: Dict[str, PlayerStore] = Field(default_factory=dict)
    max_players: int = 8
    current_round: int = 0
    rounds: List[RoundStore] = Field(default_factory=list)
    config: RoomConfig = Field(default_factory=RoomConfig)
    chat_messages: List[ChatMessage] = Field(default_factory=list)
    created_at: int
    started_at: Optional[int] = None
    last_activity: int
    winner: Optional[WinnerStore] = None

    def round_at(self, round_number: int) -> Optional[RoundStore]:
        if 1 <= round_number <= len(self.rounds):
            return self.rounds[round_number - 1]
        return None

    def active_round(self) -> Optional[RoundStore]:
        return self.round_at(self.current_round)

    @property
    def total_rounds(self) -> int:
        return len(self.rounds) if self.rounds else self.config.rounds_count


# ----------------------------
# Persisted session history
# ----------------------------

class SessionPlayer(BaseModel):
    username: str
    avatar: str = ""
    is_guest: bool = True
    joined_at: int


class SessionAnswer(BaseModel):
    category: str
    word: str
    valid: bool
    score: int
    time_left: float


class SessionPlayerRound(BaseModel):
    username: str
    answers: List[SessionAnswer] = Field(default_factory=list)
    score: int = 0


class SessionRound(BaseModel):
    round_number: int
    letter: str
    categories: List[str]
    started_at: Optional[int] = None
    ended_at: Optional[int] = None
    player_answers: List[SessionPlayerRound] = Field(default_factory=list)


class SessionScore(BaseModel):
    username: str
    score: int
    rank: int
    answers_count: int = 0
    valid_answers_count: int = 0


class SessionRecord(BaseModel):
    room_id: str
    join_code: str
    host_id: str
    players: List[SessionPlayer] = Field(default_factory=list)
    config: RoomConfig = Field(default_factory=RoomConfig)
    round_results: List[SessionRound] = Field(default_factory=list)
    final_scores: List[SessionScore] = Field(default_factory=list)
    winner: Optional[WinnerStore] = None
    status: SessionStatus = "active"
    created_at: int
    started_at: Optional[int] = None
    completed_at: Optional[int] = None
    updated_at: int
