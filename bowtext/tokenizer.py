from typing import Iterable, List, Optional

from .tokens import TokenTable

# default minimum token length
MIN_LENGTH = 2

# default stop words to ignore (Dutch product texts)
STOP_WORDS = frozenset("""
het de deze
en of om te hier nog ook al
in van voor mee per als tot uit bij
waar waardoor waarvan wanneer
je uw ze zelf jezelf
ca bijvoorbeeld
is bevat hebben kunnen mogen
gemaakt aanbevolen
belangrijke heerlijk heerlijke handig handige dagelijkse
gebruik allergieinformatie bijdrage smaak hoeveelheid
""".split())

ENGLISH_STOP_WORDS = frozenset("""
the a on to at so today all many some
are is will would their you them our everyone everything who there
while during over for below by with after in around until where
""".split())


class Tokenizer:
    """
    Whitespace tokenizer that turns text into token-table ids:
     - Expects pre-processed input (see bowtext.text.preprocess).
     - Splits on whitespace, keeps duplicates and order.
     - Drops words shorter than min_length and stop words.
     - Resolves the rest through a TokenTable, which may be shared.
    """
    def __init__(self, tokens: Optional[TokenTable] = None,
                 min_length: int = MIN_LENGTH,
                 stop_words: Iterable[str] = STOP_WORDS):
        if min_length < 0:
            raise ValueError(f"min_length must be >= 0, got {min_length}")
        self._tokens = tokens if tokens is not None else TokenTable()
        self._stop_words = frozenset(stop_words)
        self._min_length = min_length

    @property
    def tokens(self) -> TokenTable:
        return self._tokens

    @property
    def stop_words(self) -> frozenset:
        return self._stop_words

    @property
    def min_length(self) -> int:
        return self._min_length

    def words(self, text: Optional[str]) -> List[str]:
        if not text or not text.strip():
            return []
        return [w for w in text.split() if self._include(w)]

    def get(self, text: Optional[str], prefix: str = "") -> List[int]:
        ids = (self._tokens.get(w, prefix=prefix) for w in self.words(text))
        return [i for i in ids if i is not None]  # unknown while frozen → dropped

    def _include(self, word: str) -> bool:
        return len(word) >= self._min_length and word not in self._stop_words
