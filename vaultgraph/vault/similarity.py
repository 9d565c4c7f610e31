"""Edit-distance similarity for repair suggestions."""

from ..models import SimilarityCandidate

SUGGESTION_THRESHOLD = 0.3
MAX_SUGGESTIONS = 5


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance with unit insert/delete/substitute cost."""
    if len(a) < len(b):
        a, b = b, a

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Normalized similarity in [0, 1] of two names, case-insensitive.

    1.0 means identical. Two empty strings are identical; an empty string
    against a non-empty one scores 0.0.
    """
    a = a.lower()
    b = b.lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1 - levenshtein(a, b) / longest


def rank_candidates(
    target: str,
    names: list[str],
    *,
    threshold: float = SUGGESTION_THRESHOLD,
    limit: int = MAX_SUGGESTIONS,
) -> list[SimilarityCandidate]:
    """Score `target` against each name, best first.

    Keeps scores strictly above `threshold`. Ties keep the order of `names`.
    """
    scored = []
    for name in names:
        score = similarity(target, name)
        if score > threshold:
            scored.append(SimilarityCandidate(name=name, score=score))

    scored.sort(key=lambda c: c.score, reverse=True)
    return scored[: max(0, limit)]


def suggest(target: str, names: list[str]) -> list[str]:
    """Names of the closest matches for a broken target."""
    return [c.name for c in rank_candidates(target, names)]
