"""Pattern learning engine."""

from .confidence import ConfidenceScorer
from .learner import MultiStoryLearner
from .outlier_detector import OutlierDetector
from .pattern_detector import PatternDetector
from .similarity import SimilarityEngine, bigram_dice, cluster_items, normalize_title, similarity, word_jaccard
from .task_merger import TaskMerger

__all__ = [
    'ConfidenceScorer', 'MultiStoryLearner', 'OutlierDetector', 'PatternDetector',
    'SimilarityEngine', 'TaskMerger', 'bigram_dice', 'cluster_items', 'normalize_title',
    'similarity', 'word_jaccard',
]
