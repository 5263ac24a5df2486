"""Groups transcript words into subtitle cues."""

import logging
from typing import List, Optional, Sequence

from .models import Cue, TimedWord
from .translator import Translator

logger = logging.getLogger(__name__)

DEFAULT_WORDS_PER_CUE = 10

def group_cues(
    words: Sequence[TimedWord],
    max_words: int = DEFAULT_WORDS_PER_CUE,
    translator: Optional[Translator] = None,
    source_language: str = "en",
    target_language: Optional[str] = None,
) -> List[Cue]:
    """
    Groups consecutive words into cues of at most ``max_words`` words.

    A cue spans from its first word's start to its last word's end. When a
    translator and target language are given, each finished cue's text is
    replaced by its translation; timing never depends on the translated text.

    Args:
        words: The ordered transcript.
        max_words: Cue size threshold.
        translator: Optional translator, called once per cue.
        source_language: Language of ``words``.
        target_language: Language to translate into; required with a translator.

    Returns:
        The cues in transcript order. An empty transcript gives no cues.

    Raises:
        ValueError: If ``max_words`` is below 1 or a translator has no target language.
        TranslationServiceError: If translating a cue fails; there is no
                                 fallback to the untranslated text.
    """
    if max_words < 1:
        raise ValueError(f"max_words must be at least 1, got {max_words}")
    if translator is not None and not target_language:
        raise ValueError("A target language is required when a translator is given")

    cues = []
    group: List[TimedWord] = []
    last_position = len(words) - 1
    for position, word in enumerate(words):
        group.append(word)
        if len(group) < max_words and position != last_position:
            continue

        text = " ".join(w.text.strip() for w in group)
        if translator is not None:
            text = translator.translate(text, source_language, target_language)
        cues.append(Cue(text=text, start=group[0].start, end=word.end, word_count=len(group)))
        group = []

    if translator is not None:
        logger.info(f"Grouped {len(words)} words into {len(cues)} cues translated to '{target_language}'")
    else:
        logger.info(f"Grouped {len(words)} words into {len(cues)} cues")
    return cues
