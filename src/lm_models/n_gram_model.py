import math
import random
import logging
from typing import Dict, Hashable, List, Optional, Sequence, Tuple, Union
from nltk.util import ngrams
from lm_models.counting_distribution import CountingDistribution
from utils.constants import GENERATION_FALLBACK
from utils.exceptions import UnseenContext
from utils.formatting import canonicalize, extract_words

logger = logging.getLogger(__name__)

FALLBACK_POLICIES = ("unigram", "truncate")


class NgramModel:
    """Word- or character-level n-gram model built from a token sequence.

    Every window of n consecutive tokens is counted in `counts`. For n > 1 the
    model also keeps, for each context of n-1 tokens, a distribution over the
    token that followed it, which gives conditional probabilities and lets
    the model generate text.
    """

    def __init__(self, tokens: Sequence[str], n: int = 1, rng: Optional[random.Random] = None):
        """Build the model.

        Args:
            tokens: The training token sequence (words, or a string of characters)
            n: The n-gram order (1 for unigrams, 2 for bigrams, ...)
            rng: Random generator shared by all sampling operations
        """
        if n < 1:
            raise ValueError("n must be at least 1")

        self.n = n
        self._rng = rng or random.Random()
        self.unigram = CountingDistribution(tokens, rng=self._rng)
        self.counts = CountingDistribution(rng=self._rng)
        self.cond_prob: Dict[Tuple[str, ...], CountingDistribution] = {}

        for window in ngrams(tokens, n):
            self.counts.observe(window)
            if n > 1:
                context = window[:-1]
                if context not in self.cond_prob:
                    self.cond_prob[context] = CountingDistribution(rng=self._rng)
                self.cond_prob[context].observe(window[-1])

        logger.info(f"Built {n}-gram model: {self.counts.total} windows, "
                    f"{len(self.counts)} distinct, vocabulary {len(self.unigram)}")

    @classmethod
    def from_words(cls, text: str, n: int = 1, rng: Optional[random.Random] = None) -> "NgramModel":
        """Build a word model from raw text (lowercased, punctuation and digits dropped)."""
        return cls(extract_words(text), n, rng=rng)

    @classmethod
    def from_chars(cls, text: str, n: int = 1, rng: Optional[random.Random] = None) -> "NgramModel":
        """Build a character model from raw text, spaces included as tokens."""
        return cls(list(canonicalize(text)), n, rng=rng)

    def _as_ngram(self, ngram: Union[str, Sequence[str]]) -> Tuple[str, ...]:
        if isinstance(ngram, str):
            return (ngram,) if self.n == 1 else tuple(ngram)
        return tuple(ngram)

    def probability(self, ngram: Union[str, Sequence[str]]) -> float:
        """Unconditional probability of the exact n-gram (unigram probability when n == 1).

        Returns 0.0 for n-grams never observed.
        """
        return self.counts.probability(self._as_ngram(ngram))

    def conditional_probability(self, context: Sequence[str], token: str) -> float:
        """Probability of token given the preceding n-1 tokens.

        Args:
            context: The n-1 preceding tokens (empty for a unigram model)
            token: The candidate next token

        Returns:
            float: P(token | context), 0.0 if the context was never observed
        """
        if self.n == 1:
            return self.unigram.probability(token)
        distribution = self.cond_prob.get(tuple(context))
        if distribution is None:
            return 0.0
        return distribution.probability(token)

    def sample_next(self, context: Sequence[str]) -> str:
        """Draw the next token given a context, weighted by observed counts.

        Raises:
            UnseenContext: If the context has no observations
        """
        if self.n == 1:
            return self.unigram.sample()
        context = tuple(context)
        distribution = self.cond_prob.get(context)
        if distribution is None or distribution.total == 0:
            raise UnseenContext(context)
        return distribution.sample()

    def generate(self, length: int, fallback: str = GENERATION_FALLBACK) -> List[str]:
        """Generate a sequence of tokens.

        The first n-1 tokens come from a frequency-weighted draw of an observed
        n-gram; every following token is sampled given the last n-1 tokens.

        Args:
            length: Number of tokens to generate
            fallback: What to do on an unseen context: "unigram" draws from the
                      unigram distribution, "truncate" stops generation early

        Returns:
            List[str]: The generated tokens (shorter than length only when truncated)
        """
        if fallback not in FALLBACK_POLICIES:
            raise ValueError(f"Unknown fallback policy: {fallback!r}")
        if length <= 0:
            return []
        if self.n == 1:
            return [self.unigram.sample() for _ in range(length)]

        output = list(self.counts.sample()[:self.n - 1])[:length]
        while len(output) < length:
            context = tuple(output[-(self.n - 1):])
            try:
                output.append(self.sample_next(context))
            except UnseenContext:
                if fallback == "truncate":
                    logger.debug(f"Unseen context {context}, truncating at {len(output)} tokens")
                    break
                output.append(self.unigram.sample())
        return output

    def log_score_text(self, tokens: Sequence[str], epsilon: float) -> float:
        """Total log-likelihood of a token sequence under the model.

        Each window contributes log(max(P(token | context), epsilon)), so unseen
        events are penalized instead of producing log(0).

        Args:
            tokens: Tokens to score (a string is scored character by character)
            epsilon: Floor probability for unseen events

        Returns:
            float: Sum of the log conditional probabilities
        """
        total = 0.0
        for window in ngrams(tokens, self.n):
            prob = self.conditional_probability(window[:-1], window[-1])
            total += math.log(max(prob, epsilon))
        return total

    def top(self, k: int) -> List[Tuple[Hashable, int]]:
        return self.counts.top(k)

    @property
    def vocabulary(self) -> List[str]:
        return list(self.unigram)

    @property
    def max_token_length(self) -> int:
        """Length of the longest token seen in training (0 for an empty model)."""
        return max((len(token) for token in self.unigram), default=0)
