import random
import time
from dataclasses import dataclass, field
from typing import Callable

import httpx

from .config import Settings
from .services.store import KVStore


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ServiceContext:
    """Everything a core operation needs, built once at startup and passed in explicitly."""

    settings: Settings
    store: KVStore
    client: httpx.AsyncClient
    clock: Callable[[], int] = now_ms
    rng: random.Random = field(default_factory=random.Random)
