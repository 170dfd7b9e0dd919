"""
Best-first search decoder for monoalphabetic substitution (permutation) ciphers.

The search runs over an implicit graph of partial keys:

1. Nodes:
   - A CipherMap: partial injective map ciphertext letter -> plaintext letter
   - The root is the empty map, goals are full 26-letter permutations

2. Edges:
   - Bind the most frequent still-unmapped ciphertext letter to one of the
     plaintext letters not used yet
   - Letters absent from the ciphertext cannot change any score, so they
     only get their default binding

3. Scoring:
   - Every search pass has an anchor key. The unresolved part of a partial
     map is filled in from the anchor: unbound letters keep their anchor
     target while it is free, letters whose target was taken share the
     leftover targets (most frequent in the corpus first)
   - Binding one letter away from the anchor therefore swaps two targets
     of the anchor key, and the node is scored by the interpolated
     unigram + bigram + word score of the completed key
   - The default successor of a node keeps its parent's score, so a pass
     only leaves the anchor where a swap strictly improves the score

4. Discipline:
   - Priority queue, highest score first, deeper node on ties, then
     insertion order
   - The first complete map popped ends the pass (best-effort, not a
     global optimum)
   - The first pass is anchored on frequency alignment (ciphertext letters
     by count paired with corpus letters by count). Each following pass is
     anchored on the previous result, until a pass returns its own anchor
   - Restarts perturb the best key with a few random swaps and refine it
     again; the best key over all restarts is kept
   - An expansion budget and a wall-clock timeout bound the whole decode
"""

import heapq
import itertools
import logging
import random
import time
from collections import Counter
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from lm_models.interpolated_model import InterpolatedLanguageModel
from utils.constants import (
    ALPHABET,
    UNIGRAM_WEIGHT,
    BIGRAM_WEIGHT,
    WORD_WEIGHT,
    PERMUTATION_EPSILON,
    MAX_EXPANSIONS,
    SEARCH_TIMEOUT,
    SEARCH_RESTARTS,
    PERTURBATION_SWAPS,
    SEARCH_SEED,
)
from utils.exceptions import NoSolution
from utils.formatting import canonicalize

logger = logging.getLogger(__name__)

UNMAPPED = "_"


def _as_letter(char: str) -> str:
    letter = char.lower()
    if len(letter) != 1 or letter not in ALPHABET:
        raise ValueError(f"Not an ASCII letter: {char!r}")
    return letter


class CipherMap:
    """Partial injective substitution key, ciphertext letter -> plaintext letter.

    Instances are immutable values: `bind` returns a new map. Two different
    ciphertext letters never share a plaintext letter, and unmapped letters
    are never translated implicitly. Letters are case-insensitive.
    """

    __slots__ = ("_mapping", "_targets", "_hash")

    def __init__(self, mapping: Optional[Dict[str, str]] = None):
        normalized = {}
        for cipher_letter, plain_letter in (mapping or {}).items():
            normalized[_as_letter(cipher_letter)] = _as_letter(plain_letter)
        if len(normalized) != len(mapping or {}):
            raise ValueError("A ciphertext letter appears twice in the mapping")

        targets = frozenset(normalized.values())
        if len(targets) != len(normalized):
            raise ValueError("Two ciphertext letters cannot map to the same plaintext letter")

        self._mapping = normalized
        self._targets = targets
        self._hash = hash(frozenset(normalized.items()))

    @classmethod
    def identity(cls) -> "CipherMap":
        return cls({letter: letter for letter in ALPHABET})

    @classmethod
    def from_key(cls, key: str) -> "CipherMap":
        """Build a map from a 26-character key: key[i] is the plaintext letter for ALPHABET[i]."""
        if len(key) != len(ALPHABET):
            raise ValueError("A key must have exactly 26 characters")
        return cls({cipher_letter: plain_letter for cipher_letter, plain_letter in zip(ALPHABET, key)
                    if plain_letter != UNMAPPED})

    def bind(self, cipher_letter: str, plain_letter: str) -> "CipherMap":
        """Return a new map with one more binding.

        Raises:
            ValueError: If cipher_letter is already bound, plain_letter is already used,
                        or either one is not an ASCII letter
        """
        return self.extend([(cipher_letter, plain_letter)])

    def extend(self, bindings: Iterable[Tuple[str, str]]) -> "CipherMap":
        """Return a new map with all bindings added (same checks as bind)."""
        extended = dict(self._mapping)
        used = set(self._targets)
        for cipher_letter, plain_letter in bindings:
            cipher_letter, plain_letter = _as_letter(cipher_letter), _as_letter(plain_letter)
            if cipher_letter in extended:
                raise ValueError(f"{cipher_letter!r} is already mapped to {extended[cipher_letter]!r}")
            if plain_letter in used:
                raise ValueError(f"{plain_letter!r} is already the target of another letter")
            extended[cipher_letter] = plain_letter
            used.add(plain_letter)
        return CipherMap(extended)

    def swap(self, first: str, second: str) -> "CipherMap":
        """Exchange the targets of two ciphertext letters (unmapped letters stay unmapped)."""
        first, second = _as_letter(first), _as_letter(second)
        swapped = dict(self._mapping)
        swapped.pop(first, None)
        swapped.pop(second, None)
        if second in self._mapping:
            swapped[first] = self._mapping[second]
        if first in self._mapping:
            swapped[second] = self._mapping[first]
        return CipherMap(swapped)

    def inverse(self) -> "CipherMap":
        """The same key read in the other direction (plaintext -> ciphertext)."""
        return CipherMap({plain_letter: cipher_letter for cipher_letter, plain_letter in self._mapping.items()})

    @property
    def is_complete(self) -> bool:
        return len(self._mapping) == len(ALPHABET)

    @property
    def targets(self) -> frozenset:
        return self._targets

    def unmapped(self) -> List[str]:
        return [letter for letter in ALPHABET if letter not in self._mapping]

    def unused_targets(self) -> List[str]:
        return [letter for letter in ALPHABET if letter not in self._targets]

    def translate(self, text: str) -> str:
        """Apply the map letter by letter, preserving case and non-letters.

        Letters without a binding are rendered as "_".
        """
        output = []
        for char in text:
            if char.isascii() and char.isalpha():
                plain_letter = self._mapping.get(char.lower(), UNMAPPED)
                output.append(plain_letter.upper() if char.isupper() else plain_letter)
            else:
                output.append(char)
        return "".join(output)

    def key_string(self) -> str:
        """The map as a 26-character key in ciphertext-alphabet order ("_" for unmapped)."""
        return "".join(self._mapping.get(letter, UNMAPPED) for letter in ALPHABET)

    def items(self) -> Iterable[Tuple[str, str]]:
        return self._mapping.items()

    def get(self, cipher_letter: str, default: Optional[str] = None) -> Optional[str]:
        return self._mapping.get(cipher_letter, default)

    def __getitem__(self, cipher_letter: str) -> str:
        return self._mapping[cipher_letter]

    def __contains__(self, cipher_letter: str) -> bool:
        return cipher_letter in self._mapping

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CipherMap):
            return NotImplemented
        return self._mapping == other._mapping

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        return f"CipherMap({self.key_string()!r})"


class SearchNode(NamedTuple):
    """A frontier entry of the permutation search."""
    cipher_map: CipherMap
    score: float

    @property
    def depth(self) -> int:
        return len(self.cipher_map)


class SearchContext:
    """State of a single decode call.

    Holds the canonical ciphertext, its letter statistics, the current
    anchor key, the score cache and the budget. The decoder itself only
    keeps read-only models and configuration, so one decoder can serve
    concurrent decode calls.
    """

    def __init__(self, ciphertext: str, language_model: InterpolatedLanguageModel, plain_order: List[str],
                 max_expansions: int, timeout: Optional[float], seed: Optional[int]):
        self.canonical = canonicalize(ciphertext)
        self.cipher_counts = Counter(char for char in self.canonical if char != " ")
        self.cipher_order = sorted(ALPHABET, key=lambda letter: (-self.cipher_counts[letter], letter))
        self.present = [letter for letter in ALPHABET if self.cipher_counts[letter] > 0]
        self.anchor = CipherMap(dict(zip(self.cipher_order, plain_order)))
        self.rng = random.Random(seed)
        self.stats = {"expansions": 0, "generated": 0, "rounds": 0, "restarts": 0}

        self._lm = language_model
        self._plain_order = plain_order
        self._score_cache: Dict[str, float] = {}
        self._max_expansions = max_expansions
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def out_of_budget(self) -> bool:
        if self.stats["expansions"] >= self._max_expansions:
            return True
        return self._deadline is not None and time.monotonic() > self._deadline

    def complete(self, cipher_map: CipherMap) -> CipherMap:
        """Fill in a partial map from the anchor key."""
        kept = {}
        displaced = []
        for letter in self.cipher_order:
            if letter in cipher_map:
                continue
            target = self.anchor[letter]
            if target in cipher_map.targets:
                displaced.append(letter)
            else:
                kept[letter] = target

        kept_targets = set(kept.values())
        leftovers = [target for target in self._plain_order
                     if target not in cipher_map.targets and target not in kept_targets]
        kept.update(zip(displaced, leftovers))
        return cipher_map.extend(kept.items())

    def score(self, cipher_map: CipherMap) -> float:
        """Interpolated log-score of the ciphertext decoded by the completion of cipher_map."""
        completion = self.complete(cipher_map)
        key = completion.key_string()
        if key not in self._score_cache:
            self._score_cache[key] = self._lm.log_score_text(completion.translate(self.canonical))
        return self._score_cache[key]

    def successors(self, cipher_map: CipherMap) -> List[CipherMap]:
        """Bind the most frequent unmapped ciphertext letter to each unused plaintext letter.

        The default binding (the one the node's completion already uses) comes first.
        """
        letter = next(letter for letter in self.cipher_order if letter not in cipher_map)
        default = self.complete(cipher_map)[letter]
        if self.cipher_counts[letter] == 0:
            return [cipher_map.bind(letter, default)]
        targets = [default] + [target for target in self._plain_order
                               if target not in cipher_map.targets and target != default]
        return [cipher_map.bind(letter, target) for target in targets]

    def perturb(self, cipher_map: CipherMap, swaps: int) -> CipherMap:
        """Swap the targets of a few random letter pairs (each pair involves a letter of the ciphertext)."""
        if not self.present:
            return cipher_map
        for _ in range(swaps):
            cipher_map = cipher_map.swap(self.rng.choice(self.present), self.rng.choice(ALPHABET))
        return cipher_map


class PermutationCipherDecoder:
    """Decodes substitution ciphers with best-first search over partial keys."""

    def __init__(self,
                 corpus: Optional[str] = None,
                 language_model: Optional[InterpolatedLanguageModel] = None,
                 unigram_weight: Optional[float] = None,
                 bigram_weight: Optional[float] = None,
                 word_weight: Optional[float] = None,
                 epsilon: Optional[float] = None,
                 max_expansions: int = MAX_EXPANSIONS,
                 timeout: Optional[float] = SEARCH_TIMEOUT,
                 restarts: int = SEARCH_RESTARTS,
                 perturbation_swaps: int = PERTURBATION_SWAPS,
                 seed: Optional[int] = SEARCH_SEED,
                 return_best_on_exhaustion: bool = False):
        """Initialize the decoder.

        Args:
            corpus: Training text; builds the scoring model when language_model is not given
            language_model: Pre-built scoring model (carries its own weights and epsilon)
            unigram_weight: Weight of the letter-frequency term (corpus only)
            bigram_weight: Weight of the character bigram term (corpus only)
            word_weight: Weight of the dictionary word term (corpus only)
            epsilon: Floor probability for unseen letters and bigrams (corpus only)
            max_expansions: Maximum number of nodes expanded per decode
            timeout: Wall-clock limit in seconds per decode (None for no limit)
            restarts: Number of perturb-and-refine restarts after the first refined key
            perturbation_swaps: Random swaps applied to the best key before each restart
            seed: Seed of the per-decode random generator used by restarts
            return_best_on_exhaustion: If the budget runs out before any full key
                                       is found, return the completion of the best
                                       frontier node instead of raising NoSolution
        """
        weights = {
            "unigram_weight": unigram_weight,
            "bigram_weight": bigram_weight,
            "word_weight": word_weight,
            "epsilon": epsilon,
        }
        if language_model is not None:
            given = sorted(name for name, value in weights.items() if value is not None)
            if given:
                raise ValueError(f"{', '.join(given)} cannot be combined with a pre-built language_model")
        else:
            if corpus is None:
                raise ValueError("Either corpus or language_model must be given")
            defaults = {
                "unigram_weight": UNIGRAM_WEIGHT,
                "bigram_weight": BIGRAM_WEIGHT,
                "word_weight": WORD_WEIGHT,
                "epsilon": PERMUTATION_EPSILON,
            }
            language_model = InterpolatedLanguageModel.from_corpus(
                corpus,
                **{name: defaults[name] if value is None else value for name, value in weights.items()},
            )
        if restarts < 0 or perturbation_swaps < 0:
            raise ValueError("restarts and perturbation_swaps must be non-negative")

        self.lm = language_model
        self.max_expansions = max_expansions
        self.timeout = timeout
        self.restarts = restarts
        self.perturbation_swaps = perturbation_swaps
        self.seed = seed
        self.return_best_on_exhaustion = return_best_on_exhaustion

        letter_counts = self.lm.unigram_lm.unigram
        self._plain_order = sorted(ALPHABET, key=lambda letter: (-letter_counts.count(letter), letter))

        # Snapshot of the most recent decode call
        self.stats: Dict[str, int] = {}

    def prepare(self, ciphertext: str) -> SearchContext:
        """Create the per-call search state for ciphertext."""
        return SearchContext(ciphertext, self.lm, self._plain_order,
                             self.max_expansions, self.timeout, self.seed)

    def _search(self, context: SearchContext) -> SearchNode:
        """Run one best-first pass from the context's anchor.

        Returns:
            SearchNode: The first complete node popped, or the popped node at
                        which the budget ran out

        Raises:
            NoSolution: If the queue empties without a complete node
        """
        counter = itertools.count()
        frontier: List[Tuple[float, int, int, SearchNode]] = []

        def push(cipher_map: CipherMap) -> None:
            node = SearchNode(cipher_map, context.score(cipher_map))
            heapq.heappush(frontier, (-node.score, -node.depth, next(counter), node))
            context.stats["generated"] += 1

        push(CipherMap())
        explored = set()

        while frontier:
            node = heapq.heappop(frontier)[-1]

            if node.cipher_map.is_complete:
                return node

            if node.cipher_map in explored:
                continue

            if context.out_of_budget():
                return node

            explored.add(node.cipher_map)
            context.stats["expansions"] += 1
            logger.debug(f"Expanding depth {node.depth} score {node.score:.2f}: {node.cipher_map.key_string()}")

            for child in context.successors(node.cipher_map):
                if child not in explored:
                    push(child)

        logger.warning("Search queue exhausted without a complete key")
        raise NoSolution("Search queue exhausted without a complete key", context.stats["expansions"])

    def _refine(self, context: SearchContext, anchor: CipherMap) -> SearchNode:
        """Repeat search passes, each anchored on the previous result, until a pass returns its anchor.

        Returns an incomplete node only if the budget ran out before the first pass finished.
        """
        best = None
        while True:
            context.anchor = anchor
            node = self._search(context)
            context.stats["rounds"] += 1

            if not node.cipher_map.is_complete:
                if best is None:
                    return node
                completion = SearchNode(context.complete(node.cipher_map), node.score)
                return max(best, completion, key=lambda candidate: candidate.score)

            logger.debug(f"Pass {context.stats['rounds']}: {node.cipher_map.key_string()} (score {node.score:.2f})")
            if node.cipher_map == anchor:
                return node
            best, anchor = node, node.cipher_map

    def decode_map(self, ciphertext: str) -> CipherMap:
        """Search for the best full substitution key for ciphertext.

        Returns:
            CipherMap: A complete 26-letter permutation (ciphertext -> plaintext)

        Raises:
            NoSolution: If the queue empties, or the budget runs out before any
                        full key is found and return_best_on_exhaustion is False
        """
        context = self.prepare(ciphertext)
        logger.info(f"Starting permutation search over {len(context.present)} distinct ciphertext letters "
                    f"(budget: {self.max_expansions} expansions, timeout: {self.timeout})")
        try:
            best = self._refine(context, context.anchor)
            if not best.cipher_map.is_complete:
                return self._exhausted(context, best)

            for restart in range(self.restarts):
                if context.out_of_budget():
                    logger.warning(f"Search budget exhausted after {restart} restarts")
                    break
                context.stats["restarts"] += 1
                candidate = self._refine(context, context.perturb(best.cipher_map, self.perturbation_swaps))
                if not candidate.cipher_map.is_complete:
                    candidate = SearchNode(context.complete(candidate.cipher_map), candidate.score)
                if candidate.score > best.score:
                    logger.info(f"Restart {restart + 1} improved the score to {candidate.score:.2f}")
                    best = candidate

            logger.info(f"Found key {best.cipher_map.key_string()} after {context.stats['expansions']} expansions "
                        f"(score {best.score:.2f})")
            return best.cipher_map
        finally:
            self.stats = dict(context.stats)

    def _exhausted(self, context: SearchContext, best_node: SearchNode) -> CipherMap:
        logger.warning(f"Search budget exhausted after {context.stats['expansions']} expansions")
        if self.return_best_on_exhaustion:
            completion = context.complete(best_node.cipher_map)
            logger.info(f"Returning best partial key completed to {completion.key_string()}")
            return completion
        raise NoSolution(f"Search budget exhausted after {context.stats['expansions']} expansions",
                         context.stats["expansions"])

    def decode_text(self, ciphertext: str) -> str:
        """Decode ciphertext, preserving case and non-letter characters."""
        return self.decode_map(ciphertext).translate(ciphertext)
