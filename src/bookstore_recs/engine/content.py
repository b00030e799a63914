from bookstore_recs.domain import CatalogBook, reference_name
from bookstore_recs.engine.text import tokenize

TITLE_WEIGHT = 3
DESCRIPTION_WEIGHT = 1
CATEGORY_WEIGHT = 2
AUTHOR_WEIGHT = 2
DESCRIPTION_PREFIX_CHARS = 200


def build_content_vector(book: CatalogBook) -> list[str]:
    """Flatten a book into a weighted token multiset.

    Field weights are expressed by repeating tokens, which scales linearly under
    term frequency. Raw category/author identifiers are tokenized as-is.
    """
    tokens: list[str] = []

    if book.title:
        tokens.extend(tokenize(book.title) * TITLE_WEIGHT)

    if book.description:
        tokens.extend(tokenize(book.description[:DESCRIPTION_PREFIX_CHARS]) * DESCRIPTION_WEIGHT)

    category_name = reference_name(book.category)
    if category_name:
        tokens.extend(tokenize(category_name) * CATEGORY_WEIGHT)

    author_name = reference_name(book.author)
    if author_name:
        tokens.extend(tokenize(author_name) * AUTHOR_WEIGHT)

    return tokens
