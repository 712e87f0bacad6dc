import time
from typing import Callable, Optional

from intel.config import GNEWS_COOLDOWN_SECONDS


class RateLimiter:
    """Cooldown de um provedor medido.

    Após um 429 o provedor fica fechado até ``backoff_until``; a expiração é
    implícita (basta o relógio passar). Sem lock: duas requisições podem
    gravar o mesmo cooldown ao mesmo tempo, o resultado é o mesmo.
    """

    def __init__(self, cooldown: float = GNEWS_COOLDOWN_SECONDS, clock: Callable[[], float] = time.time):
        self.cooldown = cooldown
        self.clock = clock
        self.backoff_until = 0.0

    def is_open(self, now: Optional[float] = None) -> bool:
        now = self.clock() if now is None else now
        return now >= self.backoff_until

    def record_rate_limited(self, now: Optional[float] = None):
        now = self.clock() if now is None else now
        self.backoff_until = now + self.cooldown
