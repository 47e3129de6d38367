"""
BM25 Lexical Index.

Okapi BM25 over evidence chunks with k1=1.5 and b=0.75:

    idf(t)      = max(0, ln((N - df + 0.5) / (df + 0.5)))
    score(d, q) = sum over t in q of idf(t) * tf * (k1 + 1) / (tf + k1 * (1 - b + b * |d| / avgdl))

The index is immutable once built. Scores are stored in
Evidence.similarity so lexical and semantic candidates can be merged.
"""

import logging
import math
import re
from collections import Counter
from typing import Dict, List, Sequence, Tuple

from ...models.evidence import Evidence, EvidenceChunk

logger = logging.getLogger(__name__)

STOPWORDS = frozenset({
    "the", "is", "at", "which", "on", "a", "an", "as", "are", "was",
    "were", "been", "be", "have", "has", "had", "do", "does", "did", "but",
    "if", "or", "and", "for", "to", "of", "in", "it", "by", "with",
    "from", "this", "that", "will", "would", "can", "could", "should", "may", "might",
})

MIN_TOKEN_LENGTH = 3

_NON_ALNUM = re.compile(r'[^a-z0-9 ]')


def tokenize(text: str) -> List[str]:
    """
    Lower-case, replace anything outside [a-z0-9 ] with a space, split,
    and drop short tokens and stopwords.

    Example:
        >>> tokenize("The Redis cache was approved!")
        ['redis', 'cache', 'approved']
    """
    cleaned = _NON_ALNUM.sub(" ", text.lower())
    return [
        token for token in cleaned.split()
        if len(token) >= MIN_TOKEN_LENGTH and token not in STOPWORDS
    ]


def lexical_score(query: str, document: str) -> float:
    """Fraction of distinct query tokens found in the document."""
    query_tokens = set(tokenize(query))
    doc_tokens = set(tokenize(document))
    if not query_tokens or not doc_tokens:
        return 0.0
    matches = sum(1 for token in query_tokens if token in doc_tokens)
    return matches / len(query_tokens)


class BM25Index:
    """
    Immutable BM25 index over a fixed list of chunks.

    Example:
        >>> index = BM25Index.build(chunks)
        >>> results = index.search("cache invalidation", top_k=5)
        >>> results[0].rank
        1
    """

    K1 = 1.5
    B = 0.75

    def __init__(
        self,
        chunks: Sequence[EvidenceChunk],
        postings: Dict[str, Tuple[int, ...]],
        doc_frequency: Dict[str, int],
        doc_lengths: Tuple[int, ...],
    ):
        self._chunks = tuple(chunks)
        self._postings = postings
        self._doc_frequency = doc_frequency
        self._doc_lengths = doc_lengths
        self.avg_doc_length = (
            sum(doc_lengths) / len(doc_lengths) if doc_lengths else 0.0
        )

    @classmethod
    def build(cls, chunks: Sequence[EvidenceChunk]) -> "BM25Index":
        """
        Build an index.

        Each term's posting list repeats a chunk index once per
        occurrence, so its length per chunk is the term frequency.
        """
        postings: Dict[str, List[int]] = {}
        doc_frequency: Dict[str, int] = {}
        doc_lengths: List[int] = []

        for i, chunk in enumerate(chunks):
            tokens = tokenize(chunk.text)
            doc_lengths.append(len(tokens))
            for term in tokens:
                postings.setdefault(term, []).append(i)
            for term in set(tokens):
                doc_frequency[term] = doc_frequency.get(term, 0) + 1

        logger.debug(f"Built BM25 index: {len(chunks)} chunks, {len(postings)} terms")
        return cls(
            chunks,
            {term: tuple(docs) for term, docs in postings.items()},
            doc_frequency,
            tuple(doc_lengths),
        )

    @property
    def chunks(self) -> Tuple[EvidenceChunk, ...]:
        return self._chunks

    def __len__(self) -> int:
        return len(self._chunks)

    def idf(self, term: str) -> float:
        df = self._doc_frequency.get(term, 0)
        if df == 0:
            return 0.0
        n = len(self._chunks)
        return max(0.0, math.log((n - df + 0.5) / (df + 0.5)))

    def term_score(self, term_frequency: int, doc_length: float, idf: float) -> float:
        tf = float(term_frequency)
        length_ratio = doc_length / self.avg_doc_length if self.avg_doc_length else 0.0
        denominator = tf + self.K1 * (1 - self.B + self.B * length_ratio)
        return idf * (tf * (self.K1 + 1)) / denominator

    def search(self, query: str, top_k: int) -> List[Evidence]:
        """
        Rank chunks for a query.

        Args:
            query: Free text
            top_k: Maximum results

        Returns:
            Evidence sorted by descending score with 1-based ranks
        """
        query_tokens = tokenize(query)
        if not query_tokens:
            return []

        scores: Dict[int, float] = {}
        for term in query_tokens:
            docs = self._postings.get(term)
            if not docs:
                continue
            idf = self.idf(term)
            for doc_index, term_frequency in Counter(docs).items():
                scores[doc_index] = scores.get(doc_index, 0.0) + self.term_score(
                    term_frequency, self._doc_lengths[doc_index], idf
                )

        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)[:top_k]
        return [
            Evidence(
                chunk_id=self._chunks[doc_index].id,
                chunk_text=self._chunks[doc_index].text,
                similarity=score,
                rank=rank,
                metadata=self._chunks[doc_index].metadata,
            )
            for rank, (doc_index, score) in enumerate(ranked, start=1)
        ]
