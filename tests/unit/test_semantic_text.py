"""
Unit Tests for Sentence Splitting, Chunking, Participants and Cosine Similarity
"""

import numpy as np
import pytest

from grounding_engine.models.evidence import Post
from grounding_engine.services.semantic.embedding import cosine_similarity
from grounding_engine.services.semantic.text import (
    chunk_posts,
    chunk_texts,
    extract_participant_names,
    extract_participants,
    find_fabricated_participants,
    split_into_sentences,
)


# ============================================================================
# Sentence Splitting
# ============================================================================

class TestSplitIntoSentences:

    def test_basic(self):
        assert split_into_sentences("Redis was approved. Kafka was rejected! Why? Because.") == [
            "Redis was approved.",
            "Kafka was rejected!",
            "Why?",
            "Because.",
        ]

    def test_abbreviations_do_not_split(self):
        assert split_into_sentences("Dr. Smith approved it. Bob agreed.") == [
            "Dr. Smith approved it.",
            "Bob agreed.",
        ]

    def test_urls_do_not_split(self):
        text = "See https://docs.example.com/v1.2/Setup for details. Then deploy."
        assert split_into_sentences(text) == [
            "See https://docs.example.com/v1.2/Setup for details.",
            "Then deploy.",
        ]

    def test_lowercase_continuation_does_not_split(self):
        assert split_into_sentences("Version 2.5 shipped. it works.") == [
            "Version 2.5 shipped. it works."
        ]

    def test_short_fragments_are_dropped(self):
        assert split_into_sentences("Ok. Redis was approved.") == ["Redis was approved."]

    def test_whitespace_is_normalized(self):
        assert split_into_sentences("Redis   was\napproved.") == ["Redis was approved."]

    @pytest.mark.parametrize("text", ["", "   ", "Ok."])
    def test_empty(self, text):
        assert split_into_sentences(text) == []


# ============================================================================
# Chunking
# ============================================================================

class TestChunking:

    def test_single_sentence_is_one_chunk(self):
        chunks = chunk_texts(["Redis was approved for caching."])
        assert [c.text for c in chunks] == ["Redis was approved for caching."]
        assert chunks[0].id == "evidence_0:0"
        assert chunks[0].metadata == {"source_index": "0"}

    def test_sliding_windows(self):
        chunks = chunk_texts(["First one here. Second one here. Third one here."], window_size=2)
        assert [c.text for c in chunks] == [
            "First one here. Second one here.",
            "Second one here. Third one here.",
        ]

    def test_chunk_ids_are_global(self):
        chunks = chunk_texts(["Alpha text here.", "Beta text here."], source="tool")
        assert [c.id for c in chunks] == ["tool_0:0", "tool_1:1"]

    def test_post_chunks_keep_author(self, thread_posts):
        chunks = chunk_posts(thread_posts)
        assert [(c.id, c.metadata["author"]) for c in chunks] == [("p1:0", "Alice"), ("p2:1", "Bob")]

    def test_invalid_window_size_falls_back(self):
        chunks = chunk_texts(["One sentence here. Two sentence here. Three sentence here."], window_size=0)
        assert len(chunks) == 2


# ============================================================================
# Participants
# ============================================================================

class TestParticipants:

    def test_names_skip_common_words_and_sentence_starters(self):
        names = extract_participant_names("The team met on Monday. Alice proposed Redis and Bob agreed.")
        assert names == ["Alice", "Bob"]

    def test_names_are_distinct_in_order(self):
        assert extract_participant_names("Carol said yes. Carol said no.") == ["Carol"]

    def test_participants_from_posts(self, thread_posts):
        assert extract_participants(thread_posts) == {"Alice", "Bob"}

    def test_fabricated_participants_case_insensitive(self):
        assert find_fabricated_participants(["alice", "Mallory"], {"Alice", "Bob"}) == ["Mallory"]

    def test_anonymous_posts_are_ignored(self):
        assert extract_participants([Post(id="x", text="hello there")]) == set()


# ============================================================================
# Cosine Similarity
# ============================================================================

class TestCosineSimilarity:

    def test_identical(self):
        v = np.array([1.0, 2.0, 3.0])
        assert cosine_similarity(v, v) == pytest.approx(1.0)

    def test_opposite(self):
        v = np.array([1.0, -2.0])
        assert cosine_similarity(v, -v) == pytest.approx(-1.0)

    def test_orthogonal(self):
        assert cosine_similarity(np.array([1.0, 0.0]), np.array([0.0, 1.0])) == 0.0

    def test_dimension_mismatch(self):
        assert cosine_similarity(np.ones(3), np.ones(4)) == 0.0

    def test_zero_vector(self):
        assert cosine_similarity(np.zeros(3), np.ones(3)) == 0.0

    def test_missing_vector(self):
        assert cosine_similarity(None, np.ones(3)) == 0.0

    def test_bounded(self):
        rng = np.random.default_rng(7)
        for _ in range(50):
            a, b = rng.normal(size=16), rng.normal(size=16)
            assert -1.0 <= cosine_similarity(a, b) <= 1.0
