"""
Row Sources

Fetch and parse the tabular source into plain row dicts. This is the only
layer that touches files or the network, and the only asynchronous boundary
(HttpRowSource.fetch).

PRINCIPLES:
===========
1. Failed loads are first-class results (SourceLoadResult), never partial rows
2. Rows are handed over fully materialized
3. Headers are kept verbatim ("HS Code " keeps its trailing space)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional
import asyncio
import csv
import io
import logging

import httpx

from ..contracts.base import Error, ErrorCode, Timestamp


logger = logging.getLogger(__name__)


class SourceUnavailableError(Exception):
    """The source could not be fetched or parsed."""


class LoadStatus(Enum):
    SUCCESS = "success"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class SourceLoadResult:
    """Outcome of one load attempt. rows is empty whenever status is UNAVAILABLE."""
    source: str
    status: LoadStatus
    loaded_at: Timestamp
    rows: tuple = ()
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.status == LoadStatus.SUCCESS

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @staticmethod
    def success(source: str, rows: List[Dict]) -> SourceLoadResult:
        return SourceLoadResult(
            source=source,
            status=LoadStatus.SUCCESS,
            loaded_at=Timestamp.now(),
            rows=tuple(rows),
        )

    @staticmethod
    def unavailable(source: str, message: str) -> SourceLoadResult:
        return SourceLoadResult(
            source=source,
            status=LoadStatus.UNAVAILABLE,
            loaded_at=Timestamp.now(),
            error=Error.create(ErrorCode.SOURCE_UNAVAILABLE, message, source=source),
        )


@dataclass
class SourceConfig:
    """Configuration for row sources."""
    encoding: str = "utf-8-sig"
    delimiter: str = ","
    timeout: float = 30.0
    user_agent: str = "TradeGraph/1.0"
    extra_headers: Dict[str, str] = field(default_factory=dict)


def parse_csv_text(text: str, delimiter: str = ",") -> List[Dict[str, str]]:
    """
    Parse CSV text with a header row.

    A leading byte order mark is dropped and rows whose cells are all empty
    are skipped. Raises SourceUnavailableError when the document has no
    header or is not valid CSV.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    try:
        reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
        if not reader.fieldnames:
            raise SourceUnavailableError("Source has no header row")
        rows = []
        for row in reader:
            if all(value is None or str(value).strip() == "" for value in row.values()):
                continue
            rows.append(row)
        return rows
    except csv.Error as e:
        raise SourceUnavailableError(f"Parse error: {e}") from e


class RowSource:
    """Base interface for sources that yield fully materialized rows."""

    name: str = "rows"

    def read_rows(self) -> List[Dict]:
        raise NotImplementedError

    def load(self) -> SourceLoadResult:
        try:
            rows = self.read_rows()
        except SourceUnavailableError as e:
            logger.warning("Source %s unavailable: %s", self.name, e)
            return SourceLoadResult.unavailable(self.name, str(e))
        logger.info("Loaded %d rows from %s", len(rows), self.name)
        return SourceLoadResult.success(self.name, rows)


class InMemoryRowSource(RowSource):
    """Rows already parsed by the caller."""

    def __init__(self, rows, name: str = "memory"):
        self._rows = list(rows)
        self.name = name

    def read_rows(self) -> List[Dict]:
        return list(self._rows)


class FileRowSource(RowSource):
    """CSV file on local disk."""

    def __init__(self, path, config: Optional[SourceConfig] = None):
        self._path = Path(path)
        self._config = config or SourceConfig()
        self.name = str(self._path)

    def read_rows(self) -> List[Dict]:
        try:
            with open(self._path, "r", encoding=self._config.encoding, errors="replace", newline="") as f:
                text = f.read()
        except OSError as e:
            raise SourceUnavailableError(f"Load error: {e}") from e
        return parse_csv_text(text, self._config.delimiter)


class HttpRowSource(RowSource):
    """
    CSV document served over HTTP.

    fetch() is the asynchronous entry point; load() runs it to completion
    for synchronous callers.
    """

    def __init__(
        self,
        url: str,
        config: Optional[SourceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._url = url
        self._config = config or SourceConfig()
        self._transport = transport
        self.name = url

    async def fetch(self) -> SourceLoadResult:
        try:
            rows = await self._fetch_rows()
        except SourceUnavailableError as e:
            logger.warning("Source %s unavailable: %s", self.name, e)
            return SourceLoadResult.unavailable(self.name, str(e))
        logger.info("Fetched %d rows from %s", len(rows), self.name)
        return SourceLoadResult.success(self.name, rows)

    async def _fetch_rows(self) -> List[Dict]:
        headers = {'User-Agent': self._config.user_agent, **self._config.extra_headers}
        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout,
                transport=self._transport,
                follow_redirects=True
            ) as client:
                response = await client.get(self._url, headers=headers)
        except httpx.HTTPError as e:
            raise SourceUnavailableError(f"Load error: {e}") from e

        if not response.is_success:
            raise SourceUnavailableError(f"Load error: HTTP {response.status_code}")
        try:
            text = response.content.decode(self._config.encoding)
        except UnicodeDecodeError as e:
            raise SourceUnavailableError(f"Parse error: {e}") from e
        return parse_csv_text(text, self._config.delimiter)

    def read_rows(self) -> List[Dict]:
        return asyncio.run(self._fetch_rows())


def source_for(location: str, config: Optional[SourceConfig] = None) -> RowSource:
    """Pick an HTTP source for http(s) URLs, a file source otherwise."""
    if location.startswith(("http://", "https://")):
        return HttpRowSource(location, config)
    return FileRowSource(location, config)


__all__ = [
    'SourceUnavailableError', 'LoadStatus', 'SourceLoadResult', 'SourceConfig',
    'RowSource', 'InMemoryRowSource', 'FileRowSource', 'HttpRowSource',
    'parse_csv_text', 'source_for',
]
