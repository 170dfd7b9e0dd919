import logging
import math
import os
from typing import Iterable
from lm_models.counting_distribution import CountingDistribution
from utils.formatting import extract_words

logger = logging.getLogger(__name__)


class DictionaryLanguageModel:
    """Scores plaintext hypotheses based on a unigram word model.

    This model assigns a score P_word(p) based on word frequencies,
    computing the total log probability as the sum of log probabilities
    of all words in the text. Words outside the dictionary get a fixed
    penalty ten times less likely than a word seen once.
    """

    def __init__(self, word_counts: CountingDistribution):
        """Initializes the model from word frequencies.

        Args:
            word_counts: Distribution over lowercase words.

        """
        self.word_counts = word_counts
        self.log_probs = {word: math.log(word_counts.probability(word)) for word in word_counts}
        self.log_prob_unknown = math.log(1 / (max(1, word_counts.total) * 10))
        logger.info(f"Dictionary model over {len(self.log_probs)} words ({word_counts.total} tokens)")

    @classmethod
    def from_words(cls, words: Iterable[str]) -> "DictionaryLanguageModel":
        return cls(CountingDistribution(word.lower() for word in words))

    @classmethod
    def from_text(cls, text: str) -> "DictionaryLanguageModel":
        return cls.from_words(extract_words(text))

    @classmethod
    def from_word_list(cls, path: str) -> "DictionaryLanguageModel":
        """Loads a word list with frequencies.

        Args:
            path: Path to the text file containing the word list
                  (one word per line, optionally followed by its count).

        """
        if not os.path.exists(path):
            raise FileNotFoundError(f"Word list file not found: {path}")

        word_counts = CountingDistribution()
        with open(path, encoding="utf-8") as f:
            for line in f:
                parts = line.split()
                if not parts:
                    continue

                word = parts[0].lower()
                if len(parts) >= 2:
                    try:
                        word_counts.observe(word, int(parts[1]))
                    except ValueError:
                        logger.warning(f"Invalid count for word '{parts[0]}': {parts[1]}")
                        continue
                else:
                    # If no count is provided, assume count of 1
                    word_counts.observe(word)

        return cls(word_counts)

    def is_word(self, word: str) -> bool:
        return word.lower() in self.log_probs

    def word_log_prob(self, word: str) -> float:
        return self.log_probs.get(word.lower(), self.log_prob_unknown)

    def log_score_text(self, text: str) -> float:
        """Calculates the total log-score of the words in text.

        Words not in the dictionary contribute the "unknown" log-probability.
        """
        return sum(self.word_log_prob(word) for word in extract_words(text))
