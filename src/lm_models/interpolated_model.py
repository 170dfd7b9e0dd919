import logging
from typing import Tuple
from lm_models.n_gram_model import NgramModel
from lm_models.dictionary_model import DictionaryLanguageModel
from utils.constants import UNIGRAM_WEIGHT, BIGRAM_WEIGHT, WORD_WEIGHT, PERMUTATION_EPSILON
from utils.formatting import canonicalize

logger = logging.getLogger(__name__)


class InterpolatedLanguageModel:
    """
    Combines character unigram, character bigram and dictionary word models
    using log-linear interpolation.

    This is the score the permutation decoder maximizes:

        score(p) = w1 * log P_unigram(p) + w2 * log P_bigram(p) + w3 * log P_word(p)

    The unigram term only looks at letters, so it measures how well letter
    frequencies line up; the bigram term scores every adjacent character pair
    (spaces included); the word term scores whole words.
    """

    def __init__(self, unigram_lm: NgramModel, bigram_lm: NgramModel, dict_lm: DictionaryLanguageModel,
                 unigram_weight: float = UNIGRAM_WEIGHT, bigram_weight: float = BIGRAM_WEIGHT,
                 word_weight: float = WORD_WEIGHT, epsilon: float = PERMUTATION_EPSILON):
        if unigram_lm.n != 1 or bigram_lm.n != 2:
            raise ValueError("Expected a character unigram model and a character bigram model")

        self.unigram_lm = unigram_lm
        self.bigram_lm = bigram_lm
        self.dict_lm = dict_lm
        self.unigram_weight = unigram_weight
        self.bigram_weight = bigram_weight
        self.word_weight = word_weight
        self.epsilon = epsilon

    @classmethod
    def from_corpus(cls, corpus: str, **weights) -> "InterpolatedLanguageModel":
        """Train all three component models on the same corpus text."""
        return cls(
            NgramModel.from_chars(corpus, 1),
            NgramModel.from_chars(corpus, 2),
            DictionaryLanguageModel.from_text(corpus),
            **weights,
        )

    def log_score_separate(self, text: str) -> Tuple[float, float, float]:
        """
        Returns the unweighted (unigram, bigram, word) log-scores of text.
        """
        canonical = canonicalize(text)
        letters = canonical.replace(" ", "")
        unigram_score = self.unigram_lm.log_score_text(letters, self.epsilon)
        bigram_score = self.bigram_lm.log_score_text(canonical, self.epsilon)
        word_score = self.dict_lm.log_score_text(canonical)
        return unigram_score, bigram_score, word_score

    def log_score_text(self, text: str) -> float:
        """
        Calculates the final interpolated log-score for the plaintext.

        Args:
            text: The plaintext hypothesis

        Returns:
            float: The final, combined log-score. Higher is better.
        """
        unigram_score, bigram_score, word_score = self.log_score_separate(text)
        return (self.unigram_weight * unigram_score +
                self.bigram_weight * bigram_score +
                self.word_weight * word_score)

    def log_model_scores(self, text: str) -> None:
        """
        Utility function to log individual model scores for debugging.
        """
        unigram_score, bigram_score, word_score = self.log_score_separate(text)
        logger.info("--- Model Scores ---")
        logger.info(f'"{text}"')
        logger.info(f"Unigram log-score: {unigram_score:.2f}")
        logger.info(f"Bigram log-score: {bigram_score:.2f}")
        logger.info(f"Word log-score: {word_score:.2f}")
        logger.info(f"Interpolated final log-score: {self.log_score_text(text):.2f}")
