"""Retrieve database entries by accession with EBI Dbfetch."""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from Bio.SeqRecord import SeqRecord

from .catalog import DataFormat, DbfetchDb, DbfetchStyle
from .config import EBI_DBFETCH_ENDPOINT
from .errors import NoResultsError, RemoteJobFailedError, UnsupportedFormatError
from .http_client import EbioticClient
from .parsers import parse_fasta
from .query import AccessionIds, build_dbfetch_url

logger = logging.getLogger(__name__)

# Dbfetch reports problems in-band as e.g. "ERROR 12 No entries found."
ERROR_LINE = re.compile(r"^ERROR (\d+) (.*)$")
NO_ENTRIES = 12
UNKNOWN_FORMAT = 2


@dataclass(frozen=True)
class DbfetchResult:
    """Raw Dbfetch payload."""

    data: str

    def records(self) -> list[SeqRecord]:
        """Parse the payload as FASTA."""
        return parse_fasta(self.data)


@dataclass(frozen=True)
class Dbfetch:
    db: DbfetchDb = DbfetchDb.ENA_SEQUENCE
    return_format: DataFormat = DataFormat.FASTA
    style: DbfetchStyle = DbfetchStyle.RAW
    endpoint: str = EBI_DBFETCH_ENDPOINT

    def url(self, ids: Union[AccessionIds, Iterable[str]]) -> str:
        return build_dbfetch_url(self.endpoint, self.db, ids, self.return_format, self.style)

    def check_response(self, body: str) -> None:
        """Raise the matching error if ``body`` is a Dbfetch error message."""
        lines = body.strip().splitlines()
        if not lines:
            raise NoResultsError(f"Dbfetch returned an empty response for {self.db}")
        match = ERROR_LINE.match(lines[0].strip())
        if not match:
            return
        code, message = int(match.group(1)), match.group(2).strip()
        if code == NO_ENTRIES:
            raise NoResultsError(f"Dbfetch found no entries in {self.db}: {message}")
        if code == UNKNOWN_FORMAT:
            raise UnsupportedFormatError(str(self.return_format), str(self.db))
        raise RemoteJobFailedError(f"Dbfetch error {code}: {message}", status=str(code))

    async def run(
        self,
        ids: Union[AccessionIds, Iterable[str]],
        client: Optional[EbioticClient] = None,
    ) -> DbfetchResult:
        """
        Fetch ``ids`` from the configured database.

        Raises:
            UnsupportedFormatError: the database does not offer the format.
            EmptyQueryError: no ids were given.
            NoResultsError: none of the ids exist.
        """
        # Materialise once so a generator survives the retry with an owned client
        ids = ids if isinstance(ids, AccessionIds) else AccessionIds(ids)
        url = self.url(ids)
        if client is None:
            async with EbioticClient() as owned:
                return await self.run(ids, owned)

        logger.info("Submitting Dbfetch request to %s", self.db)
        body = await client.get(url)
        self.check_response(body)
        return DbfetchResult(body)
