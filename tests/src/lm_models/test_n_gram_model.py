"""
Tests for the word and character n-gram models.

Verifies:
- Window counting and unconditional probabilities
- Conditional distributions and their invariant
- Sampling, generation and fallback policies
- Log-likelihood scoring with a floor probability
"""

import math
import random
import pytest
from lm_models.n_gram_model import NgramModel
from utils.exceptions import UnseenContext

WORDS = "the cat sat on the mat the cat ran".split()


class TestNgramModelCounts:
    """Test model construction and probability lookups."""

    @pytest.fixture
    def bigram_model(self):
        return NgramModel(WORDS, n=2, rng=random.Random(0))

    def test_invalid_order(self):
        with pytest.raises(ValueError):
            NgramModel(WORDS, n=0)

    def test_unigram_probability(self):
        model = NgramModel(WORDS, n=1)
        assert model.probability("the") == pytest.approx(3 / 9)
        assert model.probability(("cat",)) == pytest.approx(2 / 9)
        assert model.probability("dog") == 0.0

    def test_bigram_probability(self, bigram_model):
        # 9 tokens give 8 windows, ("the", "cat") occurs twice
        assert bigram_model.counts.total == 8
        assert bigram_model.probability(("the", "cat")) == pytest.approx(0.25)
        assert bigram_model.probability(("cat", "the")) == 0.0

    def test_single_continuation_context(self, bigram_model):
        assert bigram_model.conditional_probability(("sat",), "on") == 1.0
        for token in ("the", "cat", "mat", "ran"):
            assert bigram_model.conditional_probability(("sat",), token) == 0.0

    def test_conditional_probability_shared_context(self, bigram_model):
        assert bigram_model.conditional_probability(("the",), "cat") == pytest.approx(2 / 3)
        assert bigram_model.conditional_probability(("the",), "mat") == pytest.approx(1 / 3)

    def test_unseen_context_has_zero_probability(self, bigram_model):
        assert bigram_model.conditional_probability(("dog",), "ran") == 0.0

    def test_conditional_counts_match_prefix_counts(self, bigram_model):
        for context, distribution in bigram_model.cond_prob.items():
            prefix_count = sum(count for window, count in bigram_model.counts.items() if window[:-1] == context)
            assert distribution.total == prefix_count

    def test_unigram_conditional_uses_empty_context(self):
        model = NgramModel(WORDS, n=1)
        assert model.conditional_probability((), "cat") == pytest.approx(2 / 9)

    def test_char_model_from_text(self):
        model = NgramModel.from_chars("Abab!", n=2)
        assert model.probability("ab") == pytest.approx(2 / 3)
        assert model.conditional_probability(("a",), "b") == 1.0

    def test_word_model_from_text(self):
        model = NgramModel.from_words("The cat, the DOG; 42 cats.", n=1)
        assert model.vocabulary == ["the", "cat", "dog", "cats"]
        assert model.probability("the") == pytest.approx(0.4)
        assert model.max_token_length == 4

    def test_top(self, bigram_model):
        assert bigram_model.top(1) == [(("the", "cat"), 2)]


class TestNgramModelSampling:
    """Test sampling and text generation."""

    def test_sample_next_follows_context(self):
        model = NgramModel(WORDS, n=2, rng=random.Random(1))
        for _ in range(10):
            assert model.sample_next(("sat",)) == "on"

    def test_sample_next_unseen_context(self):
        model = NgramModel(WORDS, n=2)
        # "ran" only appears as the final token, never as a context
        with pytest.raises(UnseenContext) as excinfo:
            model.sample_next(("ran",))
        assert excinfo.value.context == ("ran",)

    def test_generate_length(self):
        model = NgramModel("a b c a b c a".split(), n=2, rng=random.Random(5))
        assert len(model.generate(12)) == 12
        assert model.generate(0) == []

    def test_generated_bigrams_were_observed(self):
        model = NgramModel("a b c a b c a".split(), n=2, rng=random.Random(5))
        output = model.generate(20)
        for window in zip(output, output[1:]):
            assert window in model.counts

    def test_generate_is_reproducible_with_seed(self):
        first = NgramModel(WORDS, n=2, rng=random.Random(11))
        second = NgramModel(WORDS, n=2, rng=random.Random(11))
        assert first.generate(15) == second.generate(15)

    def test_generate_truncates_on_unseen_context(self):
        model = NgramModel(["a", "b", "c"], n=2, rng=random.Random(2))
        output = model.generate(10, fallback="truncate")
        assert len(output) < 10
        assert output[-1] == "c"

    def test_generate_falls_back_to_unigram(self):
        model = NgramModel(["a", "b", "c"], n=2, rng=random.Random(2))
        output = model.generate(10, fallback="unigram")
        assert len(output) == 10
        assert set(output) <= {"a", "b", "c"}

    def test_generate_unknown_fallback(self):
        model = NgramModel(WORDS, n=2)
        with pytest.raises(ValueError):
            model.generate(5, fallback="retry")

    def test_unigram_generation(self):
        model = NgramModel(WORDS, n=1, rng=random.Random(3))
        output = model.generate(8)
        assert len(output) == 8
        assert set(output) <= set(WORDS)


class TestNgramModelScoring:
    """Test log-likelihood scoring."""

    def test_seen_bigrams(self):
        model = NgramModel.from_chars("abab", n=2)
        assert model.log_score_text("ab", 1e-5) == pytest.approx(0.0)
        assert model.log_score_text("aba", 1e-5) == pytest.approx(0.0)

    def test_unseen_bigram_uses_floor(self):
        model = NgramModel.from_chars("abab", n=2)
        assert model.log_score_text("aa", 1e-5) == pytest.approx(math.log(1e-5))

    def test_unigram_scoring(self):
        model = NgramModel(WORDS, n=1)
        expected = math.log(3 / 9) + math.log(2 / 9)
        assert model.log_score_text(["the", "cat"], 1e-5) == pytest.approx(expected)
