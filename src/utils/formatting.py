import re
from typing import List
from unidecode import unidecode
from num2words import num2words
from nltk.tokenize import RegexpTokenizer

_word_tokenizer = RegexpTokenizer(r"[a-z]+")

# Marker lines around the body of a Project Gutenberg text ("THIS" or "THE" depending on the edition)
_GUTENBERG_START = re.compile(r"^\*\*\* ?START OF TH(?:IS|E) PROJECT GUTENBERG EBOOK.*\n?", re.MULTILINE)
_GUTENBERG_END = re.compile(r"^\*\*\* ?END OF TH(?:IS|E) PROJECT GUTENBERG EBOOK", re.MULTILINE)


def numbers_to_words(text: str) -> str:
    """Convert all numbers in the input text to their word representations.

    Args:
        text (str): The input text containing numbers.

    Returns:
        str: The text with numbers converted to words.

    """

    def replace_number(match: re.Match) -> str:
        number_str = match.group()
        if "." in number_str:
            return num2words(float(number_str))
        return num2words(int(number_str))

    return re.sub(r"\d+(\.\d+)?", replace_number, text)


def canonicalize(text: str) -> str:
    """Reduce text to lowercase ASCII letters separated by single spaces.

    Accented letters are transliterated first ("naïve" -> "naive"); every
    other non-letter becomes a word boundary.
    """
    text = unidecode(text).lower()
    text = re.sub(r"[^a-z]+", " ", text)
    return text.strip()


def extract_words(text: str) -> List[str]:
    """Split text into lowercase alphabetic words, dropping digits and punctuation."""
    return _word_tokenizer.tokenize(unidecode(text).lower())


def strip_gutenberg(text: str) -> str:
    """Return the body between the Project Gutenberg start and end marker lines.

    A missing marker leaves that end of the text untouched.
    """
    start = _GUTENBERG_START.search(text)
    body_start = start.end() if start else 0
    end = _GUTENBERG_END.search(text, body_start)
    return text[body_start:end.start() if end else len(text)]


def format_text(text: str) -> str:
    """Clean raw corpus text: Gutenberg body only, numbers spelled out, canonical form."""
    return canonicalize(numbers_to_words(strip_gutenberg(text)))
