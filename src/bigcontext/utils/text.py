"""Text helpers including token-aware line chunking."""

from __future__ import annotations

from typing import List, Optional

from bigcontext.tokenization.counter import TokenCounter, TokenCounterLike


def split_lines(text: str) -> List[str]:
    """Split on line feeds, ignoring the empty tail left by a final line break."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def split_words(line: str, max_tokens: int, counter: TokenCounterLike) -> List[str]:
    """Greedily pack the words of ``line`` into pieces of at most ``max_tokens``.

    A single word larger than the budget is kept whole. Spacing between words
    is normalized to one space.
    """
    pieces: List[str] = []
    buffer = ""
    buffer_tokens = 0

    for word in line.split():
        word_with_space = word + " "
        word_tokens = counter.count(word_with_space)

        if buffer_tokens + word_tokens > max_tokens and buffer:
            pieces.append(buffer.strip())
            buffer = word_with_space
            buffer_tokens = word_tokens
        else:
            buffer += word_with_space
            buffer_tokens += word_tokens

    if buffer:
        pieces.append(buffer.strip())
    return pieces


def split_into_token_chunks(
    text: str,
    max_tokens: int,
    counter: Optional[TokenCounterLike] = None,
) -> List[str]:
    """Split text into chunks of whole lines that fit within ``max_tokens``.

    Lines are accumulated until the next one would overflow the budget. A line
    that exceeds the budget on its own is split on word boundaries; its last
    piece seeds the following chunk. Joining the result with ``"\\n"`` gives
    back the original words in their original order.

    Raises:
        ValueError: If ``max_tokens`` is not positive.
        EstimationUnavailable: If no counter is given and the default
            tokenizer cannot be loaded.
    """
    if max_tokens <= 0:
        raise ValueError(f"max_tokens must be positive, got {max_tokens}")
    if counter is None:
        counter = TokenCounter()

    chunks: List[str] = []
    current = ""
    current_tokens = 0

    for line in split_lines(text):
        line_with_newline = line + "\n"
        line_tokens = counter.count(line_with_newline)

        if current_tokens + line_tokens > max_tokens and current:
            chunks.append(current[:-1])
            current = line_with_newline
            current_tokens = line_tokens
        else:
            current += line_with_newline
            current_tokens += line_tokens

        if line_tokens > max_tokens:
            # current holds only this line here: anything before it was flushed above
            pieces = split_words(line, max_tokens, counter)
            if pieces:
                chunks.extend(pieces[:-1])
                current = pieces[-1] + "\n"
                current_tokens = counter.count(current)

    if current:
        chunks.append(current[:-1])

    return chunks
