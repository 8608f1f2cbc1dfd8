import random
from typing import List, Optional, Sequence

from ..models.quiz import QuizTrack


def shuffle(tracks: Sequence[QuizTrack], rng: Optional[random.Random] = None) -> List[QuizTrack]:
    """Return ``tracks`` in random presentation order.

    Draws one remaining track at a time, so every permutation is equally
    likely (the identity included).
    """
    rng = rng or random
    pool = list(tracks)
    ordered = []
    while pool:
        ordered.append(pool.pop(rng.randrange(len(pool))))
    return ordered
