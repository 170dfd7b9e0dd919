"""
Tests for the dictionary word model and the interpolated scoring model.
"""

import math
import pytest
from lm_models.dictionary_model import DictionaryLanguageModel
from lm_models.interpolated_model import InterpolatedLanguageModel
from lm_models.n_gram_model import NgramModel


class TestDictionaryLanguageModel:
    """Test the unigram word model."""

    @pytest.fixture
    def dict_model(self):
        return DictionaryLanguageModel.from_text("The cat and the dog.")

    def test_known_word_log_prob(self, dict_model):
        assert dict_model.word_log_prob("the") == pytest.approx(math.log(2 / 5))
        assert dict_model.word_log_prob("Cat") == pytest.approx(math.log(1 / 5))

    def test_log_probs_follow_word_counts(self, dict_model):
        for word in dict_model.word_counts:
            assert math.exp(dict_model.log_probs[word]) == pytest.approx(dict_model.word_counts.probability(word))
        assert sum(math.exp(log_prob) for log_prob in dict_model.log_probs.values()) == pytest.approx(1.0)

    def test_unknown_word_penalty(self, dict_model):
        assert dict_model.word_log_prob("zebra") == pytest.approx(math.log(1 / 50))
        assert dict_model.word_log_prob("zebra") < min(dict_model.log_probs.values())

    def test_membership(self, dict_model):
        assert dict_model.is_word("DOG")
        assert not dict_model.is_word("bird")

    def test_log_score_text(self, dict_model):
        expected = math.log(2 / 5) + math.log(1 / 50)
        assert dict_model.log_score_text("The zebra!") == pytest.approx(expected)

    def test_from_word_list(self, tmp_path):
        word_list = tmp_path / "words.txt"
        word_list.write_text("the 10\ncat 5\n\ndog\nbad x\n", encoding="utf-8")

        dict_model = DictionaryLanguageModel.from_word_list(str(word_list))

        assert dict_model.word_counts.total == 16
        assert dict_model.word_log_prob("the") == pytest.approx(math.log(10 / 16))
        assert dict_model.word_log_prob("dog") == pytest.approx(math.log(1 / 16))
        assert not dict_model.is_word("bad")

    def test_missing_word_list(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DictionaryLanguageModel.from_word_list(str(tmp_path / "missing.txt"))


class TestInterpolatedLanguageModel:
    """Test the weighted combination of letter, bigram and word scores."""

    CORPUS = "the cat sat on the mat and the dog sat on the log"

    @pytest.fixture
    def model(self):
        return InterpolatedLanguageModel.from_corpus(self.CORPUS)

    def test_components_are_trained_on_corpus(self, model):
        assert model.unigram_lm.n == 1
        assert model.bigram_lm.n == 2
        assert model.dict_lm.is_word("cat")

    def test_weighted_sum(self):
        model = InterpolatedLanguageModel.from_corpus(self.CORPUS, unigram_weight=2.0,
                                                      bigram_weight=0.5, word_weight=3.0)
        unigram, bigram, word = model.log_score_separate("the cat")
        assert model.log_score_text("the cat") == pytest.approx(2.0 * unigram + 0.5 * bigram + 3.0 * word)

    def test_unigram_term_ignores_spaces(self, model):
        unigram, _, _ = model.log_score_separate("at ta")
        expected = 2 * math.log(model.unigram_lm.probability("a")) + 2 * math.log(model.unigram_lm.probability("t"))
        assert unigram == pytest.approx(expected)

    def test_corpus_text_beats_scrambled_text(self, model):
        assert model.log_score_text("the cat sat on the mat") > model.log_score_text("hte tac tas no hte tam")

    def test_rejects_wrong_orders(self):
        chars = NgramModel.from_chars(self.CORPUS, 2)
        with pytest.raises(ValueError):
            InterpolatedLanguageModel(chars, chars, DictionaryLanguageModel.from_text(self.CORPUS))
