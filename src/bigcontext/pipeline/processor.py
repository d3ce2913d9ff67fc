"""Map/cache/reduce pipeline: split a document, run each chunk through the model, merge."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from bigcontext.cache.store import ChunkCacheStore
from bigcontext.config import AppConfig, resolve_api_key
from bigcontext.exceptions import (
    CacheWriteWarning,
    ChunkingError,
    EstimationUnavailable,
    GenerationError,
    MergeWriteError,
    PreconditionError,
)
from bigcontext.generation.client import ChatGenerator, OpenAIChatGenerator
from bigcontext.models import Chunk, ProgressCallback, ProgressTracker, RunReport, RunStatus
from bigcontext.tokenization.counter import TokenCounter, TokenCounterLike
from bigcontext.tokenization.estimation import TokenEstimation, estimate_tokens
from bigcontext.utils.files import combined_output_path, read_document, write_text_atomic
from bigcontext.utils.text import split_into_token_chunks

LOGGER = logging.getLogger(__name__)

KEEP_LINES_INSTRUCTION = "Return the lines that you want to keep."

ConfirmCallback = Callable[[Sequence[Chunk], TokenEstimation], bool]


def build_system_prompt(prompt: str) -> str:
    return f"{prompt}\n{KEEP_LINES_INSTRUCTION}"


def build_chunks(texts: Sequence[str]) -> List[Chunk]:
    return [Chunk(index=index, text=text) for index, text in enumerate(texts, start=1)]


def _first_generation_error(group: BaseExceptionGroup) -> Optional[GenerationError]:
    for exc in group.exceptions:
        if isinstance(exc, GenerationError):
            return exc
        if isinstance(exc, BaseExceptionGroup):
            nested = _first_generation_error(exc)
            if nested is not None:
                return nested
    return None


class MapReduceProcessor:
    """Coordinates splitting, cached concurrent generation and merging for one document."""

    def __init__(
        self,
        generator: ChatGenerator,
        config: AppConfig | None = None,
        *,
        counter: TokenCounterLike | None = None,
        confirm: ConfirmCallback | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.generator = generator
        self.config = config or AppConfig()
        self.counter = counter
        self.confirm = confirm
        self.on_progress = on_progress

    def _get_counter(self) -> TokenCounterLike:
        if self.counter is None:
            try:
                self.counter = TokenCounter(self.config.encoding_name)
            except EstimationUnavailable as exc:
                raise ChunkingError(f"failed to estimate tokens: {exc}") from exc
        return self.counter

    def split(self, text: str) -> List[Chunk]:
        """Split ``text`` into indexed chunks using the configured budget."""
        counter = self._get_counter()
        try:
            texts = split_into_token_chunks(text, self.config.chunk_tokens, counter)
        except EstimationUnavailable as exc:
            raise ChunkingError(f"failed to split into chunks: {exc}") from exc
        return build_chunks(texts)

    def estimate(self, text: str) -> TokenEstimation:
        return estimate_tokens(text, self._get_counter(), self.config.model_costs)

    async def run(self, prompt: str, document_path: Path) -> RunReport:
        """Process one document and write its combined output.

        Raises:
            DocumentReadError: If the document cannot be read.
            ChunkingError: If tokens cannot be counted.
            GenerationError: If any chunk fails; siblings are cancelled and
                no combined output is written.
            MergeWriteError: If the combined output cannot be written.
        """
        path = Path(document_path)
        LOGGER.info("File path provided: %s", path)

        text = read_document(path)
        estimation = self.estimate(text)
        LOGGER.info(
            "Text size: %d bytes, total tokens: %d", estimation.bytes_count, estimation.tokens_count
        )

        chunks = self.split(text)
        LOGGER.info("Split into %d chunks", len(chunks))

        report = RunReport(
            status=RunStatus.COMPLETED,
            document_path=path,
            chunk_count=len(chunks),
            total_tokens=estimation.tokens_count,
        )

        if self.confirm is not None and not self.confirm(chunks, estimation):
            LOGGER.info("Processing cancelled by user.")
            report.status = RunStatus.CANCELLED
            return report

        store = ChunkCacheStore.for_document(path)
        LOGGER.info("Using chunk directory: %s/", store.directory)

        results: List[Optional[str]] = [None] * len(chunks)
        tracker = ProgressTracker(total=len(chunks), callback=self.on_progress)
        pending: List[Chunk] = []

        hits = set(await asyncio.to_thread(store.cached_indices, len(chunks)))
        for chunk in chunks:
            cached = await asyncio.to_thread(store.get, chunk.index) if chunk.index in hits else None
            if cached is None:
                pending.append(chunk)
                continue
            LOGGER.info("Chunk %d: using cached result -> %s", chunk.index, store.result_path(chunk.index))
            results[chunk.index - 1] = cached
            report.cached_count += 1
            tracker.advance(chunk.index, cached=True)

        if report.cached_count:
            LOGGER.info(
                "Found %d cached results, will process %d new chunks", report.cached_count, len(pending)
            )

        if pending:
            LOGGER.info("Starting parallel processing of %d chunks...", len(pending))
            await self._dispatch(pending, build_system_prompt(prompt), store, results, tracker, report)

        output_path = combined_output_path(path)
        await asyncio.to_thread(self._merge, results, output_path)
        report.output_path = output_path
        LOGGER.info("Combined results written to: %s", output_path)
        return report

    async def _dispatch(
        self,
        pending: Sequence[Chunk],
        system_prompt: str,
        store: ChunkCacheStore,
        results: List[Optional[str]],
        tracker: ProgressTracker,
        report: RunReport,
    ) -> None:
        limit = self.config.max_concurrency
        semaphore = asyncio.Semaphore(limit) if limit else None

        try:
            async with asyncio.TaskGroup() as group:
                for chunk in pending:
                    group.create_task(
                        self._process_chunk(chunk, system_prompt, store, results, tracker, report, semaphore),
                        name=f"chunk-{chunk.index}",
                    )
        except BaseExceptionGroup as group_error:
            failure = _first_generation_error(group_error)
            if failure is None:
                raise
            LOGGER.error("Chunk %d failed, cancelling remaining chunks: %s", failure.index, failure)
            raise failure

    async def _process_chunk(
        self,
        chunk: Chunk,
        system_prompt: str,
        store: ChunkCacheStore,
        results: List[Optional[str]],
        tracker: ProgressTracker,
        report: RunReport,
        semaphore: asyncio.Semaphore | None,
    ) -> None:
        async with semaphore if semaphore is not None else contextlib.nullcontext():
            await asyncio.to_thread(store.save_chunk, chunk.index, chunk.text)
            LOGGER.info("Chunk %d: %s (processing...)", chunk.index, store.chunk_path(chunk.index))

            try:
                content = await self.generator.generate(system_prompt, chunk.text)
            except Exception as exc:
                raise GenerationError(chunk.index, str(exc)) from exc

        if not content:
            raise GenerationError(chunk.index, "no content in response")

        try:
            await asyncio.to_thread(store.put, chunk.index, content)
        except CacheWriteWarning as exc:
            LOGGER.warning("%s", exc)
            report.cache_write_failures.append(chunk.index)

        results[chunk.index - 1] = content
        report.generated_count += 1
        tracker.advance(chunk.index, cached=False)

    def _merge(self, results: Sequence[Optional[str]], output_path: Path) -> None:
        missing = [index for index, result in enumerate(results, start=1) if result is None]
        if missing:
            raise RuntimeError(f"chunks without a result: {missing}")
        try:
            write_text_atomic(output_path, "".join(results))  # type: ignore[arg-type]
        except OSError as exc:
            raise MergeWriteError(output_path, exc.strerror or str(exc)) from exc


async def process(
    prompt: str,
    document_path: Path,
    *,
    config: AppConfig | None = None,
    api_key: str | None = None,
    confirm: ConfirmCallback | None = None,
    on_progress: ProgressCallback | None = None,
) -> RunReport:
    """Run the whole pipeline against the OpenAI API.

    The API key is checked before the document is touched; without one a
    ``PreconditionError`` is raised.
    """
    config = config or AppConfig()
    api_key = resolve_api_key() if api_key is None else api_key.strip()
    if not api_key:
        raise PreconditionError("an OpenAI API key is required")

    generator = OpenAIChatGenerator(
        api_key,
        config.model_name,
        timeout=config.request_timeout,
        service_tier=config.service_tier,
    )
    async with generator:
        processor = MapReduceProcessor(generator, config, confirm=confirm, on_progress=on_progress)
        return await processor.run(prompt, document_path)


def clear_cache(document_path: Path) -> bool:
    """Delete the chunk/result directory of a document. Missing directories are fine."""
    return ChunkCacheStore.for_document(document_path).clear()
