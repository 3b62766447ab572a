from __future__ import annotations

from typing import List, Tuple

from wordrace.transport.protocols import OutgoingEvent

# Returns: (to_sender, to_room)
Result = Tuple[List[OutgoingEvent], List[OutgoingEvent]]

MIN_ROUNDS = 1
MAX_ROUNDS = 10

DEFAULT_AVATAR = "https://api.dicebear.com/7.x/avataaars/svg?seed={username}"
