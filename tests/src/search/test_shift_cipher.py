import pytest
from search.shift_cipher import ShiftCipherDecoder, all_shifts, decode, encode, rot13
from lm_models.n_gram_model import NgramModel
from utils.constants import SAMPLE_CORPUS
from utils.load_corpus import load_corpus

TEXT = "Hello, World! The quick brown fox jumps over the lazy dog (42 times)."


class TestShiftCodec:
    """Test encoding and decoding with a known shift."""

    def test_encode_shifts_letters(self):
        assert encode("abc", 1) == "bcd"
        assert encode("XYZ", 3) == "ABC"

    def test_encode_preserves_case_and_punctuation(self):
        assert encode("Hello, World!", 1) == "Ifmmp, Xpsme!"

    @pytest.mark.parametrize("shift", range(26))
    def test_round_trip(self, shift):
        assert decode(encode(TEXT, shift), shift) == TEXT

    def test_shift_zero_is_identity(self):
        assert encode(TEXT, 0) == TEXT

    def test_rot13(self):
        assert rot13("Hello") == "Uryyb"
        assert rot13(rot13(TEXT)) == TEXT

    def test_all_shifts(self):
        candidates = all_shifts(encode(TEXT, 5))
        assert len(candidates) == 26
        assert candidates[5] == TEXT


class TestShiftCipherDecoder:
    """Test key recovery by bigram likelihood."""

    @pytest.fixture(scope="class")
    def decoder(self):
        return ShiftCipherDecoder(load_corpus(SAMPLE_CORPUS))

    def test_recovers_rot13(self, decoder):
        plaintext = "The keeper showed her each task slowly and with great patience."
        assert decoder.decode_text(encode(plaintext, 13)) == plaintext

    @pytest.mark.parametrize("shift", [1, 7, 19, 25])
    def test_recovers_other_shifts(self, decoder, shift):
        plaintext = "It is easy to see now that he was proud of her, even if he never said so aloud."
        assert decoder.best_shift(encode(plaintext, shift))[0] == shift

    def test_plaintext_scores_better_than_ciphertext(self, decoder):
        plaintext = "the light does not belong to the keeper"
        assert decoder.score(plaintext) > decoder.score(encode(plaintext, 3))

    def test_text_without_letters(self, decoder):
        assert decoder.best_shift("123 !?")[0] == 0
        assert decoder.decode_text("") == ""

    def test_requires_bigram_model(self):
        with pytest.raises(ValueError):
            ShiftCipherDecoder("", bigram_model=NgramModel.from_chars("abc", 1))
