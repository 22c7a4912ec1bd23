"""Fuzzy title similarity and complete-linkage clustering."""

from typing import Callable, Dict, List, Optional, Sequence, Set, TypeVar

from ..utils.text import WHITESPACE_PATTERN, normalize_title, slugify_task_id

T = TypeVar('T')

DEFAULT_BIGRAM_WEIGHT = 0.6
DEFAULT_WORD_WEIGHT = 0.4


def _collapse(text: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", text.lower()).strip()


def _bigrams(text: str) -> Set[str]:
    return {text[i:i + 2] for i in range(len(text) - 1)}


def _words(text: str) -> Set[str]:
    return set(text.lower().split())


def bigram_dice(a: str, b: str) -> float:
    """Dice coefficient over character bigrams."""
    text_a = _collapse(a)
    text_b = _collapse(b)

    if not text_a and not text_b:
        return 1.0
    if not text_a or not text_b:
        return 0.0

    bigrams_a = _bigrams(text_a)
    bigrams_b = _bigrams(text_b)

    # Single characters have no bigrams
    if not bigrams_a or not bigrams_b:
        return 1.0 if text_a == text_b else 0.0

    return 2 * len(bigrams_a & bigrams_b) / (len(bigrams_a) + len(bigrams_b))


def word_jaccard(a: str, b: str) -> float:
    """Jaccard index over whitespace-separated words."""
    words_a = _words(a)
    words_b = _words(b)

    if not words_a and not words_b:
        return 1.0
    if not words_a or not words_b:
        return 0.0

    return len(words_a & words_b) / len(words_a | words_b)


def similarity(
    a: str,
    b: str,
    bigram_weight: float = DEFAULT_BIGRAM_WEIGHT,
    word_weight: float = DEFAULT_WORD_WEIGHT,
) -> float:
    """Blend of bigram Dice (partial word matches) and word Jaccard (whole words)."""
    return bigram_weight * bigram_dice(a, b) + word_weight * word_jaccard(a, b)


def cluster_items(
    items: Sequence[T],
    key_fn: Callable[[T], str],
    threshold: float,
    similarity_fn: Optional[Callable[[str, str], float]] = None,
) -> List[List[T]]:
    """Group items with greedy complete-linkage agglomerative clustering.

    Starts from singletons and repeatedly merges the two clusters whose
    weakest cross pair is the strongest, until that value drops below
    ``threshold``. Every pair inside a returned cluster therefore has
    similarity >= threshold.

    The pairwise matrix costs O(n^2) similarity calls; each merge scans the
    O(k^2) cluster-linkage table, so a full run is O(n^3) in the worst case.
    That is fine for task lists of a few hundred items; callers should bound
    larger inputs.

    Ties are broken by first position, so the output is deterministic and
    clusters are ordered by their earliest member.
    """
    if not items:
        return []
    if len(items) == 1:
        return [[items[0]]]

    compare = similarity_fn or similarity
    keys = [key_fn(item) for item in items]
    n = len(keys)

    # Complete linkage between clusters, indexed by cluster position.
    linkage: List[List[float]] = [[1.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            sim = compare(keys[i], keys[j])
            linkage[i][j] = sim
            linkage[j][i] = sim

    clusters: List[List[int]] = [[idx] for idx in range(n)]

    while len(clusters) > 1:
        best_pair = None
        best_sim = -1.0

        for i in range(len(clusters)):
            row = linkage[i]
            for j in range(i + 1, len(clusters)):
                if row[j] > best_sim:
                    best_sim = row[j]
                    best_pair = (i, j)

        if best_pair is None or best_sim < threshold:
            break

        i, j = best_pair
        clusters[i] = clusters[i] + clusters[j]
        del clusters[j]

        # Lance-Williams update for complete linkage: the merged cluster's
        # linkage to k is the weaker of the two old linkages.
        for k in range(len(linkage)):
            if k != i and k != j:
                merged = min(linkage[i][k], linkage[j][k])
                linkage[i][k] = merged
                linkage[k][i] = merged
        del linkage[j]
        for row in linkage:
            del row[j]

    return [[items[idx] for idx in cluster] for cluster in clusters]


class SimilarityEngine:
    """Similarity functions bound to configured weights."""

    def __init__(self, config: Optional[Dict] = None):
        """Initialize engine with the 'similarity' config section."""
        similarity_config = (config or {}).get('similarity', {})
        self.bigram_weight = similarity_config.get('bigram_weight', DEFAULT_BIGRAM_WEIGHT)
        self.word_weight = similarity_config.get('word_weight', DEFAULT_WORD_WEIGHT)

    def similarity(self, a: str, b: str) -> float:
        return similarity(a, b, self.bigram_weight, self.word_weight)

    def normalize_title(self, title: str) -> str:
        return normalize_title(title)

    def cluster_items(
        self,
        items: Sequence[T],
        key_fn: Callable[[T], str],
        threshold: float,
    ) -> List[List[T]]:
        return cluster_items(items, key_fn, threshold, self.similarity)

    def group_similarity(self, titles: Sequence[str]) -> float:
        """Average pairwise similarity, 1.0 for fewer than two titles."""
        if len(titles) <= 1:
            return 1.0

        total = 0.0
        comparisons = 0
        for i in range(len(titles)):
            for j in range(i + 1, len(titles)):
                total += self.similarity(titles[i], titles[j])
                comparisons += 1

        return round(total / comparisons, 2)
