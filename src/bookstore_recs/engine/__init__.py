from bookstore_recs.engine.content import build_content_vector
from bookstore_recs.engine.text import tokenize
from bookstore_recs.engine.vectors import (
    TermVector,
    cosine_similarity,
    inverse_document_frequency,
    mean_vector,
    term_frequency,
    tfidf,
)

__all__ = [
    "TermVector",
    "build_content_vector",
    "cosine_similarity",
    "inverse_document_frequency",
    "mean_vector",
    "term_frequency",
    "tfidf",
    "tokenize",
]
