import logging
import os
from utils.constants import CORPUS_PATH
from utils.formatting import format_text

logger = logging.getLogger(__name__)


def load_corpus(filename: str, clean: bool = False) -> str:
    """Read a training corpus from the corpus data directory.

    Args:
        filename: File name relative to the corpus directory (or an absolute path).
        clean: If True, run the text through format_text before returning it.

    Returns:
        str: The corpus text.

    """
    corpus_path = os.path.join(CORPUS_PATH, filename)
    if not os.path.exists(corpus_path):
        raise FileNotFoundError(f"Corpus file not found: {corpus_path}")

    with open(corpus_path, encoding="utf-8") as f:
        text = f.read()

    logger.info(f"Loaded corpus {filename} ({len(text)} characters)")
    if clean:
        text = format_text(text)
    return text
