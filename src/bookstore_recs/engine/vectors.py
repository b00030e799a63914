import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence

TermVector = dict[str, float]


def term_frequency(tokens: Sequence[str]) -> TermVector:
    """Relative frequency of each term; the weights sum to 1.0 for non-empty input."""
    total = len(tokens)
    if total == 0:
        return {}
    return {term: count / total for term, count in Counter(tokens).items()}


def inverse_document_frequency(corpus: Iterable[Sequence[str]]) -> TermVector:
    """``ln(N / df)`` for every term seen in the corpus.

    A term present in every document gets 0. Terms absent from the corpus are
    not in the table and weigh 0 when looked up through ``tfidf``.
    """
    document_frequency: Counter[str] = Counter()
    total_documents = 0
    for tokens in corpus:
        total_documents += 1
        document_frequency.update(set(tokens))

    return {
        term: math.log(total_documents / frequency)
        for term, frequency in document_frequency.items()
    }


def tfidf(tokens: Sequence[str], idf_table: Mapping[str, float]) -> TermVector:
    return {
        term: weight * idf_table.get(term, 0.0)
        for term, weight in term_frequency(tokens).items()
    }


def mean_vector(vectors: Sequence[Mapping[str, float]]) -> TermVector:
    """Unweighted per-term mean; a term missing from a vector counts as 0 there."""
    if not vectors:
        return {}

    totals: dict[str, float] = {}
    for vector in vectors:
        for term, weight in vector.items():
            totals[term] = totals.get(term, 0.0) + weight

    count = len(vectors)
    return {term: total / count for term, total in totals.items()}


def _squared_norm(vector: Mapping[str, float]) -> float:
    return sum(vector[term] * vector[term] for term in sorted(vector))


def cosine_similarity(vector_a: Mapping[str, float], vector_b: Mapping[str, float]) -> float:
    squared_a = _squared_norm(vector_a)
    squared_b = _squared_norm(vector_b)
    if squared_a == 0 or squared_b == 0:
        return 0.0

    # summing in term order makes the result independent of argument order
    shared = sorted(vector_a.keys() & vector_b.keys())
    dot = sum(vector_a[term] * vector_b[term] for term in shared)

    # sqrt of the product keeps cosine(a, a) at exactly 1.0; clamp residual float noise
    return min(dot / math.sqrt(squared_a * squared_b), 1.0)
