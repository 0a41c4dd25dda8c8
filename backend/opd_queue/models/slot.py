"""
Slot model: a fixed-capacity time bucket in a doctor's day.
"""

from pydantic import BaseModel, Field, computed_field
from typing import List, Optional

from .token import Token, TokenStatus


class Slot(BaseModel):
    """Time bucket holding tokens in arrival order."""
    id: str
    doctor_id: str
    slot_time: str = Field(..., description="HH:MM label, also the lookup key")
    capacity: int = Field(6, ge=0)
    delay_minutes: int = 0
    tokens: List[Token] = []

    @computed_field
    @property
    def allocated(self) -> int:
        return sum(1 for t in self.tokens if t.status == TokenStatus.ALLOCATED)

    @computed_field
    @property
    def available(self) -> int:
        return self.capacity - self.allocated

    @computed_field
    @property
    def status(self) -> str:
        if self.available <= 0:
            return "full"
        if self.delay_minutes > 0:
            return "delayed"
        return "available"

    def is_full(self) -> bool:
        return self.available <= 0

    def can_allocate(self, count: int = 1) -> bool:
        return self.available >= count

    def add_token(self, token: Token) -> Token:
        """Append a token and give it the next sequence number.

        Capacity is checked by the caller.
        """
        self.tokens.append(token)
        token.sequence_number = len(self.tokens)
        return token

    def remove_token(self, token_id: str) -> Optional[Token]:
        for index, token in enumerate(self.tokens):
            if token.id == token_id:
                del self.tokens[index]
                token.sequence_number = None
                self.renumber_tokens()
                return token
        return None

    def renumber_tokens(self) -> None:
        for index, token in enumerate(self.tokens, start=1):
            token.sequence_number = index

    def add_delay(self, minutes: int) -> None:
        self.delay_minutes += minutes

    def clear_delay(self) -> None:
        self.delay_minutes = 0

    def tokens_by_priority(self) -> List[Token]:
        """Highest score first; equal scores keep arrival order."""
        return sorted(self.tokens, key=lambda t: t.priority, reverse=True)
