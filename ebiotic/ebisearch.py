"""EBI Search REST client.

Requests are built from a chain of commands (see ``query.EbiSearchQuery``);
the helpers below cover the common chains.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from Bio.SeqRecord import SeqRecord

from .catalog import DataFormat, EbiSearchDomain
from .config import EBI_SEARCH_ENDPOINT
from .errors import NoResultsError, ResponseParseError
from .http_client import EbioticClient
from .parsers import parse_fasta
from .query import (
    AccessionIds,
    AutoComplete,
    EbiSearchQuery,
    Entry,
    MoreLikeThis,
    Query,
    SeqToolResults,
    TopTerms,
    Xref,
    ebi_search_url,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EbiSearchResult:
    """Raw EBI Search payload, decoded on request."""

    data: str

    def json(self) -> Any:
        try:
            return json.loads(self.data)
        except json.JSONDecodeError as e:
            raise ResponseParseError(
                f"EBI Search returned invalid JSON: {e}", fragment=self.data
            ) from e

    def records(self) -> list[SeqRecord]:
        return parse_fasta(self.data)


@dataclass(frozen=True)
class EbiSearch:
    domain: EbiSearchDomain = EbiSearchDomain.UNIPROT
    return_format: DataFormat = DataFormat.JSON
    endpoint: str = EBI_SEARCH_ENDPOINT

    def url(self, query: EbiSearchQuery) -> str:
        return ebi_search_url(self.endpoint, self.domain, query, self.return_format)

    def check_response(self, result: EbiSearchResult) -> None:
        """
        Raise NoResultsError if ``result`` reports that nothing matched.

        JSON search and entry responses carry ``hitCount`` and ``entries``;
        other JSON documents (suggestions, top terms) are passed through.

        Raises:
            NoResultsError: an empty body, ``hitCount`` of 0 or an empty
                ``entries`` list.
            ResponseParseError: a JSON response that cannot be decoded.
        """
        if not result.data.strip():
            raise NoResultsError(f"EBI Search returned an empty response for {self.domain}")
        if self.return_format is not DataFormat.JSON:
            return

        payload = result.json()
        if not isinstance(payload, dict):
            return
        if payload.get("hitCount") == 0 or payload.get("entries") == []:
            raise NoResultsError(f"EBI Search found no entries in {self.domain}")

    async def run(
        self,
        query: EbiSearchQuery,
        client: Optional[EbioticClient] = None,
    ) -> EbiSearchResult:
        """
        Send ``query`` and return the raw result.

        Raises:
            RequestValidationError: the query or format is invalid for the domain.
            NoResultsError: the service reported zero matches.
        """
        url = self.url(query)
        if client is None:
            async with EbioticClient() as owned:
                return await self.run(query, owned)

        logger.info("EBI Search request: %s", url)
        result = EbiSearchResult(await client.get(url))
        self.check_response(result)
        return result

    async def search(
        self,
        text: str,
        client: Optional[EbioticClient] = None,
        **options,
    ) -> EbiSearchResult:
        """Free-text search of the domain."""
        return await self.run(EbiSearchQuery((Query(text),), **options), client)

    async def entries(
        self,
        ids: Union[AccessionIds, Iterable[str]],
        client: Optional[EbioticClient] = None,
        **options,
    ) -> EbiSearchResult:
        return await self.run(EbiSearchQuery((Entry(ids),), **options), client)

    async def xref(
        self,
        ids: Union[AccessionIds, Iterable[str]],
        target: Optional[EbiSearchDomain] = None,
        client: Optional[EbioticClient] = None,
        **options,
    ) -> EbiSearchResult:
        """Cross-references of ``ids``, optionally only those in ``target``."""
        return await self.run(EbiSearchQuery((Entry(ids), Xref(target)), **options), client)

    async def more_like_this(
        self,
        ids: Union[AccessionIds, Iterable[str]],
        target: Optional[EbiSearchDomain] = None,
        client: Optional[EbioticClient] = None,
        **options,
    ) -> EbiSearchResult:
        return await self.run(
            EbiSearchQuery((Entry(ids), MoreLikeThis(target)), **options), client
        )

    async def autocomplete(
        self,
        term: str,
        client: Optional[EbioticClient] = None,
        **options,
    ) -> EbiSearchResult:
        return await self.run(EbiSearchQuery((AutoComplete(term),), **options), client)

    async def top_terms(
        self,
        field_id: str,
        client: Optional[EbioticClient] = None,
        **options,
    ) -> EbiSearchResult:
        return await self.run(EbiSearchQuery((TopTerms(field_id),), **options), client)

    async def seq_tool_results(
        self,
        tool_id: str,
        job_id: str,
        client: Optional[EbioticClient] = None,
        **options,
    ) -> EbiSearchResult:
        """Search results of a finished EBI sequence similarity job."""
        return await self.run(
            EbiSearchQuery((SeqToolResults(tool_id, job_id),), **options), client
        )
