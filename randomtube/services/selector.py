import random
from typing import Optional, Sequence

from ..models import Video

def pick_random(videos: Sequence[Video], rng: Optional[random.Random] = None) -> Optional[Video]:
    """Picks one video uniformly at random, or None for an empty list."""
    if not videos:
        return None
    rng = rng or random
    return videos[rng.randrange(len(videos))]
