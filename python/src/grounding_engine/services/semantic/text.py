"""
Sentence splitting, chunking and name heuristics.

Sentence boundaries are a period, exclamation or question mark followed
by whitespace and a capital letter, except after known abbreviations or
inside URLs. Chunks are sliding windows of sentences that keep their
source identity (post id, author) for attribution checks.
"""

import re
from typing import Dict, Iterable, List, Set

from ...models.evidence import EvidenceChunk, Post

ABBREVIATIONS = [
    "Dr", "Mr", "Mrs", "Ms", "Prof", "Sr", "Jr",
    "Inc", "Ltd", "Co", "Corp",
    "e.g", "i.e", "etc", "vs", "approx",
    "Jan", "Feb", "Mar", "Apr", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

# Capitalized words that are rarely people
COMMON_WORDS = frozenset({
    "The", "This", "That", "These", "Those",
    "We", "They", "He", "She", "It",
    "My", "Your", "Our", "Their",
    "I", "You", "Me",
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
    "January", "February", "March", "April", "May", "June", "July", "August",
    "September", "October", "November", "December",
    "Redis", "PostgreSQL", "MySQL", "MongoDB",
    "Docker", "Kubernetes", "AWS", "Azure", "GCP",
    "Linux", "Windows", "MacOS", "Ubuntu",
    "Python", "JavaScript", "TypeScript", "Java",
    "React", "Vue", "Angular", "Node",
    "GitHub", "GitLab", "Bitbucket",
    "Slack", "Teams", "Zoom",
    "Mattermost", "Jira", "Confluence",
})

SENTENCE_STARTERS = frozenset({
    "The", "This", "That", "These", "Those",
    "We", "They", "It", "There", "Here",
    "When", "Where", "Why", "How", "What", "Which", "Who",
})

MIN_SENTENCE_LENGTH = 3
DEFAULT_WINDOW_SIZE = 2

_ABBR_MARKER = "\x00ABBR\x00"
_URL_MARKER = "\x00URL\x00"
_ABBR_PATTERN = re.compile(
    r'\b(' + "|".join(re.escape(a) for a in ABBREVIATIONS) + r')\.'
)
_URL_PATTERN = re.compile(r'https?://\S+')
_BOUNDARY_PATTERN = re.compile(r'([.!?])(\s+)([A-Z])')
_WHITESPACE_PATTERN = re.compile(r'\s+')
_NAME_PATTERN = re.compile(r'\b[A-Z][a-z]+\b')


def is_capitalized(word: str) -> bool:
    return bool(word) and word[0].isupper()


def is_common_word(word: str) -> bool:
    return word in COMMON_WORDS


def contains_name(text: str, name: str) -> bool:
    """Case-insensitive substring check."""
    return name.lower() in text.lower()


def split_into_sentences(text: str) -> List[str]:
    """
    Split text into sentences.

    Example:
        >>> split_into_sentences("Dr. Smith approved it. Bob agreed!")
        ['Dr. Smith approved it.', 'Bob agreed!']
    """
    if not text:
        return []

    normalized = _WHITESPACE_PATTERN.sub(" ", text).strip()

    protected = _ABBR_PATTERN.sub(lambda m: m.group(0) + _ABBR_MARKER, normalized)
    protected = _URL_PATTERN.sub(lambda m: m.group(0) + _URL_MARKER, protected)

    sentences = []
    last_end = 0
    for match in _BOUNDARY_PATTERN.finditer(protected):
        sentence_end = match.start(3)
        sentences.append(protected[last_end:sentence_end])
        last_end = sentence_end
    if last_end < len(protected):
        sentences.append(protected[last_end:])

    result = []
    for sentence in sentences:
        sentence = sentence.replace(_ABBR_MARKER, "").replace(_URL_MARKER, "").strip()
        if len(sentence) > MIN_SENTENCE_LENGTH:
            result.append(sentence)
    return result


def _sentence_start(text: str, sentence: str) -> int:
    words = sentence.split()
    if not words:
        return 0
    probe = " ".join(words[:2])
    index = text.find(probe)
    return index if index >= 0 else 0


def _sentence_end(text: str, sentence: str) -> int:
    words = sentence.split()
    if not words:
        return len(text)
    probe = " ".join(words[-2:])
    index = text.rfind(probe)
    return index + len(probe) if index >= 0 else len(text)


def _windows(text: str, window_size: int) -> List[tuple]:
    """(chunk_text, start, end) sliding windows with stride 1."""
    sentences = split_into_sentences(text)
    if not sentences:
        return []
    if len(sentences) == 1:
        return [(sentences[0], 0, len(sentences[0]))]

    windows = []
    for i in range(len(sentences)):
        end = min(i + window_size, len(sentences))
        window = sentences[i:end]
        windows.append((
            " ".join(window),
            _sentence_start(text, window[0]),
            _sentence_end(text, window[-1]),
        ))
        if end == len(sentences):
            break
    return windows


def chunk_posts(posts: Iterable[Post], window_size: int = DEFAULT_WINDOW_SIZE) -> List[EvidenceChunk]:
    """
    Split posts into overlapping sentence windows.

    Chunk ids are "<post_id>:<chunk_index>" with a thread-wide index.
    """
    if window_size < 1:
        window_size = DEFAULT_WINDOW_SIZE

    chunks: List[EvidenceChunk] = []
    for post in posts:
        for chunk_text, start, end in _windows(post.text, window_size):
            chunks.append(EvidenceChunk(
                id=f"{post.id}:{len(chunks)}",
                text=chunk_text,
                metadata={"post_id": post.id, "author": post.author},
                start_index=start,
                end_index=end,
            ))
    return chunks


def chunk_texts(
    texts: Iterable[str],
    window_size: int = DEFAULT_WINDOW_SIZE,
    source: str = "evidence",
) -> List[EvidenceChunk]:
    """Split free evidence texts into overlapping sentence windows."""
    if window_size < 1:
        window_size = DEFAULT_WINDOW_SIZE

    chunks: List[EvidenceChunk] = []
    for text_index, text in enumerate(texts):
        for chunk_text, start, end in _windows(text, window_size):
            chunks.append(EvidenceChunk(
                id=f"{source}_{text_index}:{len(chunks)}",
                text=chunk_text,
                metadata={"source_index": str(text_index)},
                start_index=start,
                end_index=end,
            ))
    return chunks


def extract_participant_names(text: str) -> List[str]:
    """Distinct capitalized words that look like names, in order of appearance."""
    names: Dict[str, None] = {}
    for match in _NAME_PATTERN.finditer(text):
        word = match.group(0)
        if is_common_word(word) or word in SENTENCE_STARTERS:
            continue
        names.setdefault(word, None)
    return list(names)


def extract_participants(posts: Iterable[Post]) -> Set[str]:
    return {post.author for post in posts if post.author}


def find_fabricated_participants(names: Iterable[str], participants: Set[str]) -> List[str]:
    """Names not matching any participant (case-insensitive)."""
    known = {p.lower() for p in participants}
    return [name for name in names if name.lower() not in known]
