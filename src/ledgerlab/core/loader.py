"""
Loading journals with their includes.

``JournalLoader`` parses the root file and every transitively included file
concurrently, one task per file. Tasks push directives and errors into one
bounded channel; a wait group closes the channel once all tasks are done.
The calling thread drains the channel into a ``Journal``, which is the
barrier before the sequential processing stages. The first error cancels all
outstanding tasks and is raised to the caller.
"""

from __future__ import annotations

import logging
import posixpath
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from ..syntax.parser import Parser
from .builder import Builder
from .concurrency import CancellationToken, Channel, WaitGroup
from .directives import Include
from .errors import IncludeError, LedgerError, PipelineCancelledError
from .journal import Journal
from .registry import Registry

__all__ = ["Resolver", "FileResolver", "MemoryResolver", "JournalLoader"]

logger = logging.getLogger(__name__)

Resolver = Callable[[str], str]


class FileResolver:
    """Opens journal files relative to a root directory."""

    def __init__(self, root: str | Path = "."):
        self.root = Path(root)

    def __call__(self, path: str) -> str:
        return (self.root / path).read_text(encoding="utf-8")


class MemoryResolver:
    """Serves journal texts from a mapping of path to text."""

    def __init__(self, files: Mapping[str, str]):
        self.files = {posixpath.normpath(k): v for k, v in files.items()}

    def __call__(self, path: str) -> str:
        try:
            return self.files[posixpath.normpath(path)]
        except KeyError:
            raise FileNotFoundError(path) from None


class JournalLoader:
    """
    Parses a journal and its includes into a ``Journal``.

    Args:
        registry: Registry shared by all files
        resolver: Returns the text for a path; raises ``OSError`` or
            ``UnicodeDecodeError`` when the path cannot be read
        macros: Account macro substitutions passed to the builder
        max_workers: Size of the parsing thread pool
        capacity: Capacity of the directive channel

    **Example Usage:**
        ```python
        from ledgerlab.core.loader import JournalLoader, MemoryResolver

        resolver = MemoryResolver({
            "main.knut": 'include "prices.knut"\\n',
            "prices.knut": "2024-01-01 price EUR 1.1 USD\\n",
        })
        journal = JournalLoader(resolver=resolver).load("main.knut")
        ```
    """

    def __init__(
        self,
        registry: Registry | None = None,
        resolver: Resolver | None = None,
        macros: Mapping[str, str] | None = None,
        max_workers: int = 4,
        capacity: int = 1000,
    ):
        self.registry = registry or Registry()
        self.resolver = resolver or FileResolver()
        self.builder = Builder(self.registry, macros)
        self.max_workers = max_workers
        self.capacity = capacity

    def load(self, path: str, journal: Journal | None = None) -> Journal:
        """
        Load ``path`` and its includes.

        Raises:
            ParseError: For syntax errors in any file
            IncludeError: When a file cannot be read or decoded
        """
        journal = journal or Journal(self.registry)
        token = CancellationToken()
        channel: Channel[object] = Channel(self.capacity, token)
        wg = WaitGroup()
        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="ledgerlab-parse"
        ) as executor:

            def spawn(file: str, source: str) -> None:
                token.raise_if_cancelled()
                wg.add()
                try:
                    executor.submit(self._parse, file, source, spawn, channel, wg)
                except RuntimeError:
                    # the pool shuts down once the run has failed
                    wg.done()
                    raise PipelineCancelledError("pipeline cancelled") from None

            spawn(posixpath.normpath(path), "")
            closer = threading.Thread(
                target=self._close_when_done, args=(wg, channel), daemon=True
            )
            closer.start()
            try:
                count = 0
                for item in channel:
                    if isinstance(item, Exception):
                        raise item
                    journal.add(item)
                    count += 1
            finally:
                token.cancel()
        logger.info("loaded %d directives into %d days from %s", count, len(journal), path)
        return journal

    @staticmethod
    def _close_when_done(wg: WaitGroup, channel: Channel) -> None:
        try:
            wg.wait(channel.token)
            channel.close()
        except PipelineCancelledError:
            return

    def _parse(
        self,
        path: str,
        source: str,
        spawn: Callable[[str, str], None],
        channel: Channel,
        wg: WaitGroup,
    ) -> None:
        try:
            logger.debug("parsing %s", path)
            try:
                text = self.resolver(path)
            except (OSError, ValueError) as exc:
                raise IncludeError(source, path, exc) from exc
            file = Parser(text, path).parse_file()
            for directive in self.builder.build_file(file):
                if isinstance(directive, Include):
                    included = posixpath.normpath(
                        posixpath.join(posixpath.dirname(path), directive.path)
                    )
                    logger.debug("%s includes %s", path, included)
                    spawn(included, path)
                else:
                    channel.push(directive)
        except PipelineCancelledError:
            logger.debug("parsing %s cancelled", path)
        except LedgerError as exc:
            self._report(channel, exc)
        except Exception as exc:
            self._report(channel, exc)
        finally:
            wg.done()

    @staticmethod
    def _report(channel: Channel, exc: Exception) -> None:
        if channel.token.cancelled:
            return
        try:
            channel.push(exc)
        except PipelineCancelledError:
            return
