from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Iterable, Iterator, List, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class TextChunk:
    text: str
    offset: int


def chunk_text(s: str, chunk_size: int, overlap: int = 0) -> List[TextChunk]:
    """Char-based chunking with a fixed overlap to respect prompt limits."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError(
            f"overlap must be in [0, chunk_size), got overlap={overlap} chunk_size={chunk_size}"
        )
    if len(s) < chunk_size:
        return [TextChunk(s, 0)]
    chunks = []
    start = 0
    while start < len(s):
        end = min(len(s), start + chunk_size)
        chunks.append(TextChunk(s[start:end], start))
        if end == len(s):
            break
        start = end - overlap
    return chunks


def dedupe_last_wins(items: Iterable[T], key: Callable[[T], Hashable]) -> List[T]:
    """
    Keep the last item seen for each key, ordered by the key's first appearance.
    """
    merged: Dict[Hashable, T] = {}
    for x in items:
        merged[key(x)] = x
    return list(merged.values())


def batched(items: Sequence[T], size: int) -> Iterator[tuple]:
    """Yield (start_offset, batch) pairs of at most `size` items."""
    if size <= 0:
        raise ValueError(f"batch size must be positive, got {size}")
    for i in range(0, len(items), size):
        yield i, items[i : i + size]
