import re
import unicodedata

MIN_TOKEN_LENGTH = 3

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_COMBINING_MARKS = re.compile("[\u0300-\u036f]")
# NFD leaves the stroked d intact, so it is folded explicitly.
_EXTRA_FOLDS = str.maketrans({"đ": "d"})


def fold_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return _COMBINING_MARKS.sub("", decomposed).translate(_EXTRA_FOLDS)


def tokenize(text: str | None) -> list[str]:
    """Split free text into lowercase ASCII index terms.

    Diacritics are folded to their base letters, anything outside ``[a-z0-9]``
    separates tokens, and tokens shorter than three characters are dropped.
    """
    if not text:
        return []

    normalized = _NON_ALNUM.sub(" ", fold_diacritics(text.lower()))
    return [token for token in normalized.split() if len(token) >= MIN_TOKEN_LENGTH]
