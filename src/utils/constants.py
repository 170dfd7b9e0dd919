import pathlib
import string

ALPHABET = string.ascii_lowercase

# Floors used in place of log(0) for unseen events
SEGMENT_EPSILON = 1e-10
SHIFT_EPSILON = 1e-5
PERMUTATION_EPSILON = 1e-6

# Permutation decoder score weights
UNIGRAM_WEIGHT = 1.0
BIGRAM_WEIGHT = 1.0
WORD_WEIGHT = 1.0

# Permutation search budget (TIMEOUT in seconds, None disables it)
MAX_EXPANSIONS = 5000
SEARCH_TIMEOUT = None

# Restarts from a perturbed best key once refinement stops improving
SEARCH_RESTARTS = 10
PERTURBATION_SWAPS = 3
SEARCH_SEED = 0

GENERATION_FALLBACK = "unigram"

PROJECT_ROOT = pathlib.Path(__file__).parent.parent.parent
DATA_PATH = PROJECT_ROOT / "data"
CORPUS_PATH = DATA_PATH / "corpus"
SAMPLE_CORPUS = "sample_corpus.txt"
