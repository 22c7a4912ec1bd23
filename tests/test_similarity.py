"""Tests for title similarity, normalization and clustering."""

import random

import pytest

from template_learner.engine.similarity import (
    SimilarityEngine,
    bigram_dice,
    cluster_items,
    similarity,
    word_jaccard,
)
from template_learner.utils.text import normalize_title, slugify_task_id

VOCABULARY = [
    "api", "endpoint", "backend", "frontend", "form", "unit", "tests", "test",
    "deploy", "staging", "review", "design", "contract", "docs", "login",
]


def test_empty_strings_are_identical():
    assert similarity("", "") == pytest.approx(1.0)


def test_empty_against_non_empty_is_zero():
    assert similarity("", "x") == 0.0
    assert similarity("write tests", "") == 0.0


def test_single_characters_compare_by_equality():
    assert bigram_dice("a", "a") == 1.0
    assert bigram_dice("a", "b") == 0.0


def test_identical_titles_score_one():
    assert similarity("Write unit tests", "write  UNIT tests") == pytest.approx(1.0)


def test_similarity_is_symmetric_and_bounded():
    rng = random.Random(7)
    for _ in range(50):
        a = " ".join(rng.sample(VOCABULARY, rng.randint(0, 4)))
        b = " ".join(rng.sample(VOCABULARY, rng.randint(0, 4)))
        assert similarity(a, b) == pytest.approx(similarity(b, a))
        assert 0.0 <= similarity(a, b) <= 1.0 + 1e-9


def test_plural_variant_is_similar():
    assert similarity("write unit tests", "write unit test") >= 0.6


def test_unrelated_titles_are_dissimilar():
    assert similarity("deploy to staging", "design api contract") < 0.45


def test_word_jaccard():
    assert word_jaccard("write unit tests", "write unit test") == pytest.approx(0.5)


def test_normalize_title_strips_verbs_and_placeholders():
    assert normalize_title("Implement: Login form") == "login form"
    assert normalize_title("Design ${story.title} mockups") == "mockups"
    assert normalize_title("  Code   Review ") == "code review"


def test_normalize_title_requires_word_boundary():
    assert normalize_title("Testing plan") == "testing plan"
    assert normalize_title("Designer handoff") == "designer handoff"


def test_slugify_task_id():
    assert slugify_task_id("Implement API endpoint", 0) == "api-endpoint"
    assert slugify_task_id("!!!", 2) == "task-3"


def test_slugify_task_id_truncates_without_trailing_dash():
    slug = slugify_task_id("Update the onboarding email templates for enterprise", 0)
    assert len(slug) <= 30
    assert not slug.endswith("-")


def test_cluster_items_edge_cases():
    assert cluster_items([], lambda item: item, 0.6) == []
    assert cluster_items(["only"], lambda item: item, 0.6) == [["only"]]


def test_cluster_items_groups_variants():
    titles = ["write unit tests", "deploy to staging", "write unit test", "deploy on staging"]
    clusters = cluster_items(titles, lambda item: item, 0.6)
    assert clusters == [["write unit tests", "write unit test"], ["deploy to staging", "deploy on staging"]]


@pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
@pytest.mark.parametrize("threshold", [0.45, 0.6, 0.8])
def test_cluster_items_is_complete_linkage_partition(seed, threshold):
    """Every item lands in exactly one cluster and every pair in a cluster clears the threshold."""
    rng = random.Random(seed)
    titles = [" ".join(rng.sample(VOCABULARY, rng.randint(1, 3))) for _ in range(25)]
    indexed = list(enumerate(titles))

    clusters = cluster_items(indexed, lambda item: item[1], threshold)

    seen = sorted(index for cluster in clusters for index, _ in cluster)
    assert seen == list(range(len(titles)))

    for cluster in clusters:
        for i, (_, first) in enumerate(cluster):
            for _, second in cluster[i + 1:]:
                assert similarity(first, second) >= threshold

    earliest = [min(index for index, _ in cluster) for cluster in clusters]
    assert earliest == sorted(earliest)


def test_cluster_items_is_deterministic():
    rng = random.Random(11)
    titles = [" ".join(rng.sample(VOCABULARY, 2)) for _ in range(20)]
    assert cluster_items(titles, lambda item: item, 0.5) == cluster_items(titles, lambda item: item, 0.5)


def test_engine_uses_configured_weights():
    engine = SimilarityEngine({'similarity': {'bigram_weight': 1.0, 'word_weight': 0.0}})
    assert engine.similarity("write unit tests", "write unit test") == pytest.approx(0.96)


def test_group_similarity():
    engine = SimilarityEngine()
    assert engine.group_similarity(["solo"]) == 1.0
    assert engine.group_similarity(["same", "same", "same"]) == 1.0
    assert engine.group_similarity(["write tests", "deploy"]) < 0.5
