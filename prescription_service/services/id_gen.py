# FILE: prescription_service/services/id_gen.py
from __future__ import annotations

import random
import re
from typing import Optional

from prescription_service.core.config import settings


# ----------------------------
# Prescription ID generator
# ----------------------------
class RandomIdGenerator:
    """
    Callable producing ``<prefix><width random digits>``, e.g. SNKTMOCH00004213.

    Uniqueness is NOT guaranteed here; the caller checks the store and asks
    again on collision. Pass a seeded ``random.Random`` for repeatable ids.
    """

    def __init__(
        self,
        prefix: Optional[str] = None,
        *,
        width: int = 8,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.prefix = settings.RX_ID_PREFIX if prefix is None else prefix
        self.width = width
        self._rng = rng or random.SystemRandom()

    def __call__(self) -> str:
        n = self._rng.randrange(10**self.width)
        return f"{self.prefix}{n:0{self.width}d}"


def is_valid_rx_id(value: str,
                   prefix: Optional[str] = None,
                   *,
                   width: int = 8) -> bool:
    p = settings.RX_ID_PREFIX if prefix is None else prefix
    return bool(re.fullmatch(rf"{re.escape(p)}\d{{{width}}}", value or ""))
