"""Licensed signer directory: picks a counter-signer for the patient's state."""

from __future__ import annotations

import json
import logging
import random
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from lmn_fulfillment.exceptions import DispatchError
from lmn_fulfillment.models import Recipient

log = logging.getLogger(__name__)


class Signer(BaseModel):
    """A practitioner able to counter-sign letters."""

    name: str
    email: str
    licensed_states: list[str] = Field(default_factory=list)

    @field_validator("licensed_states", mode="before")
    @classmethod
    def _upper(cls, value: list[str]) -> list[str]:
        return [str(s).strip().upper() for s in value or []]

    def to_recipient(self) -> Recipient:
        return Recipient(name=self.name, email=self.email)


class SignerDirectory:
    """In-process list of signers, filtered by licensed state."""

    def __init__(self, signers: list[Signer], *, rng: random.Random | None = None) -> None:
        self._signers = list(signers)
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self._signers)

    def licensed_in(self, state: str) -> list[Signer]:
        code = state.strip().upper()
        return [s for s in self._signers if code in s.licensed_states]

    def select(self, state: str) -> Signer:
        """Random choice among signers licensed in *state*."""
        candidates = self.licensed_in(state)
        if not candidates:
            raise DispatchError(f"No signer licensed in state {state!r}")
        signer = self._rng.choice(candidates)
        log.info("Selected signer %s for state %s (%d candidates)", signer.email, state, len(candidates))
        return signer

    @classmethod
    def from_json_file(cls, path: Path) -> SignerDirectory:
        """Load ``[{"name", "email", "licensed_states": [...]}, ...]``."""
        data = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            data = data.get("signers", [])
        return cls([Signer.model_validate(item) for item in data])
