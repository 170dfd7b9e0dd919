"""
Viterbi word segmentation.

Finds the most probable way to split a string written without spaces
("itiseasy") into words under a unigram word model ("it is easy").

best[i] holds the best segmentation of the first i characters:

    best[0] = log 1 = 0.0
    best[i] = max over j < i of  best[j] + log P(text[j:i])

Substrings the model has never seen are scored with a floor probability
epsilon instead of 0, so every non-empty input has a segmentation (unknown
stretches simply come out as low-probability "words").
"""

import math
import logging
from typing import List, NamedTuple, Optional, Tuple
from utils.constants import SEGMENT_EPSILON
from utils.exceptions import EmptyInput

logger = logging.getLogger(__name__)


class SegmentationState(NamedTuple):
    """Best segmentation ending at one position of the input."""
    log_prob: float
    word: Optional[str]
    backpointer: Optional[int]


class ViterbiSegmenter:
    """Segments spaceless text with dynamic programming over word boundaries."""

    def __init__(self, unigram_model, epsilon: float = SEGMENT_EPSILON, max_word_length: Optional[int] = None):
        """Initialize the segmenter.

        Args:
            unigram_model: Word model exposing probability((word,)), e.g. NgramModel(words, 1)
            epsilon: Probability used for substrings the model has never seen
            max_word_length: Longest candidate word; defaults to the longest word
                             the model was trained on (no limit if unknown)
        """
        if epsilon <= 0:
            raise ValueError("epsilon must be positive")

        self.model = unigram_model
        self.epsilon = epsilon
        self.max_word_length = max_word_length or getattr(unigram_model, "max_token_length", None) or None

    def _word_log_prob(self, word: str) -> float:
        prob = self.model.probability((word,))
        if prob <= 0:
            return math.log(self.epsilon)
        return math.log(prob)

    def segment(self, text: str) -> Tuple[List[str], float]:
        """Find the maximum-likelihood segmentation of text.

        Lookups are case-insensitive; the returned words keep the case of the input.
        On equal scores the longest word ending at a position wins.

        Args:
            text: The string to segment (no spaces expected)

        Returns:
            Tuple of (words in order, probability of the segmentation)

        Raises:
            EmptyInput: If text is empty
        """
        if not text:
            raise EmptyInput("Cannot segment an empty string")

        lookup = text.lower()
        length = len(text)
        best: List[Optional[SegmentationState]] = [SegmentationState(0.0, None, None)] + [None] * length

        for i in range(1, length + 1):
            start = 0 if self.max_word_length is None else max(0, i - self.max_word_length)
            # j ascending visits the longest word first; only strictly better candidates replace it
            for j in range(start, i):
                candidate = best[j].log_prob + self._word_log_prob(lookup[j:i])
                if best[i] is None or candidate > best[i].log_prob:
                    best[i] = SegmentationState(candidate, text[j:i], j)

        words: List[str] = []
        position = length
        while position > 0:
            state = best[position]
            words.append(state.word)
            position = state.backpointer
        words.reverse()

        probability = math.exp(best[length].log_prob)
        logger.debug(f"Segmented {text!r} into {words} (log-prob {best[length].log_prob:.2f})")
        return words, probability
