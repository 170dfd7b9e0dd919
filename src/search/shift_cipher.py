"""
Shift (Caesar) cipher encoding and decoding.

encode/decode are pure functions over strings. ShiftCipherDecoder breaks a
shift cipher without the key: it tries all 26 shifts and keeps the candidate
whose characters look most like the training corpus under a character
bigram model.
"""

import logging
from typing import List, Optional, Tuple
from lm_models.n_gram_model import NgramModel
from utils.constants import SHIFT_EPSILON
from utils.formatting import canonicalize

logger = logging.getLogger(__name__)


def _shift_char(char: str, shift: int) -> str:
    if "a" <= char <= "z":
        return chr((ord(char) - ord("a") + shift) % 26 + ord("a"))
    if "A" <= char <= "Z":
        return chr((ord(char) - ord("A") + shift) % 26 + ord("A"))
    return char


def encode(plaintext: str, shift: int) -> str:
    """Shift every ASCII letter by shift positions, keeping case; other characters pass through."""
    return "".join(_shift_char(char, shift) for char in plaintext)


def decode(ciphertext: str, shift: int) -> str:
    """Undo encode(ciphertext, shift)."""
    return encode(ciphertext, (26 - shift) % 26)


def rot13(text: str) -> str:
    return encode(text, 13)


def all_shifts(text: str) -> List[str]:
    """Return the 26 decodings of text, indexed by shift."""
    return [decode(text, shift) for shift in range(26)]


class ShiftCipherDecoder:
    """Recovers shift-cipher plaintext by maximizing character bigram likelihood."""

    def __init__(self, corpus: str, epsilon: float = SHIFT_EPSILON, bigram_model: Optional[NgramModel] = None):
        """Initialize the decoder.

        Args:
            corpus: Training text providing the bigram statistics
            epsilon: Floor probability for bigrams never seen in the corpus
            bigram_model: Pre-built character bigram model (skips training on corpus)
        """
        self.P2 = bigram_model or NgramModel.from_chars(corpus, 2)
        if self.P2.n != 2:
            raise ValueError("ShiftCipherDecoder needs a character bigram model")
        self.epsilon = epsilon

    def score(self, candidate: str) -> float:
        """Bigram log-likelihood of a candidate plaintext (higher is more English-like)."""
        return self.P2.log_score_text(canonicalize(candidate), self.epsilon)

    def best_shift(self, ciphertext: str) -> Tuple[int, float]:
        """Try all 26 shifts and return (shift, score) of the best one.

        Ties go to the smallest shift.
        """
        best_shift, best_score = 0, None
        for shift, candidate in enumerate(all_shifts(ciphertext)):
            candidate_score = self.score(candidate)
            logger.debug(f"Shift {shift:2d}: score {candidate_score:10.2f} | {candidate[:40]!r}")
            if best_score is None or candidate_score > best_score:
                best_shift, best_score = shift, candidate_score
        return best_shift, best_score

    def decode_text(self, ciphertext: str) -> str:
        """Decode ciphertext with the most likely shift."""
        shift, score = self.best_shift(ciphertext)
        logger.info(f"Best shift: {shift} (bigram log-score {score:.2f})")
        return decode(ciphertext, shift)
