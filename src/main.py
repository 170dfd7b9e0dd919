import logging
from lm_models.n_gram_model import NgramModel
from lm_models.interpolated_model import InterpolatedLanguageModel
from search.viterbi_segmenter import ViterbiSegmenter
from search.shift_cipher import ShiftCipherDecoder, encode
from search.permutation_decoder import CipherMap, PermutationCipherDecoder
from utils.constants import SAMPLE_CORPUS
from utils.exceptions import NoSolution
from utils.load_corpus import load_corpus

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

if __name__ == "__main__":
    logger = logging.getLogger(__name__)
    corpus = load_corpus(SAMPLE_CORPUS)

    # Text generation from word models
    word_bigrams = NgramModel.from_words(corpus, 2)
    logger.info(f"Most frequent word bigrams: {word_bigrams.top(5)}")
    logger.info(f"Generated: {' '.join(word_bigrams.generate(15))}")

    # Word segmentation
    segmenter = ViterbiSegmenter(NgramModel.from_words(corpus, 1))
    words, probability = segmenter.segment("itiseasytoseethatthelightneverwentout")
    logger.info(f"Segmentation: {words} (P = {probability:.3e})")

    # Shift cipher
    plaintext = "The keeper showed her each task slowly and with great patience."
    ciphertext = encode(plaintext, 13)
    shift_decoder = ShiftCipherDecoder(corpus)
    logger.info(f"Shift ciphertext: {ciphertext}")
    logger.info(f"Shift decoded:    {shift_decoder.decode_text(ciphertext)}")

    # Permutation cipher
    encryption_key = CipherMap.from_key("qwertyuiopasdfghjklzxcvbnm")
    language_model = InterpolatedLanguageModel.from_corpus(corpus)
    paragraph = corpus.split("\n\n")[1]
    ciphertext = encryption_key.translate(paragraph)
    logger.info("=" * 60)
    logger.info(f"Permutation ciphertext: {ciphertext[:100]}...")
    permutation_decoder = PermutationCipherDecoder(language_model=language_model, return_best_on_exhaustion=True)
    try:
        decoded = permutation_decoder.decode_text(ciphertext)
        logger.info(f"Permutation decoded:    {decoded[:100]}...")
        logger.info(f"Search stats: {permutation_decoder.stats}")
        language_model.log_model_scores(decoded[:100])
    except NoSolution as e:
        logger.error(f"No key found after {e.expansions} expansions")
