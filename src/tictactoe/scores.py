"""Win/draw counters and the stores that persist them between sessions."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field

from .game import Mark, Outcome, Result

logger = logging.getLogger(__name__)


class ScoreLedger(BaseModel):
    """Running totals keyed the way they are stored: ``X``, ``O`` and ``draw``."""

    model_config = ConfigDict(populate_by_name=True)

    x: int = Field(default=0, alias="X", ge=0)
    o: int = Field(default=0, alias="O", ge=0)
    draw: int = Field(default=0, ge=0)

    def wins(self, mark: Mark) -> int:
        return self.x if mark is Mark.X else self.o

    def record(self, result: Result) -> None:
        if result.outcome is Outcome.DRAW:
            self.draw += 1
        elif result.outcome is Outcome.WIN:
            if result.winner is Mark.X:
                self.x += 1
            else:
                self.o += 1

    def clear(self) -> None:
        self.x = self.o = self.draw = 0

    def as_dict(self) -> Dict[str, int]:
        return self.model_dump(by_alias=True)


class ScoreStore(Protocol):
    def load_scores(self) -> Optional[ScoreLedger]:
        ...

    def save_scores(self, ledger: ScoreLedger) -> None:
        ...


class MemoryScoreStore:
    """Keeps the last saved ledger in process memory."""

    def __init__(self, ledger: Optional[ScoreLedger] = None) -> None:
        self._saved = ledger.model_copy() if ledger is not None else None

    def load_scores(self) -> Optional[ScoreLedger]:
        return self._saved.model_copy() if self._saved is not None else None

    def save_scores(self, ledger: ScoreLedger) -> None:
        self._saved = ledger.model_copy()


class JsonScoreStore:
    """
    Ledger persisted as a small JSON document.

    A missing file means nothing was saved yet. Unreadable or malformed files
    raise ``OSError`` / ``ValueError``; callers decide how to degrade.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path).expanduser()

    def load_scores(self) -> Optional[ScoreLedger]:
        if not self.path.exists():
            return None
        raw = self.path.read_text(encoding="utf-8")
        return ScoreLedger.model_validate(json.loads(raw))

    def save_scores(self, ledger: ScoreLedger) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Write beside the target and swap it in so the old file survives a crash
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(ledger.as_dict()), encoding="utf-8")
        tmp.replace(self.path)
        logger.debug("Saved scores to %s", self.path)
