"""NCBI BLAST over the Blast.cgi URL API.

A search is submitted with ``CMD=Put``, which answers with a request id
(RID) and an estimated time to completion (RTOE). The SearchInfo object is
then polled until the job is READY, and the hit list is fetched as JSON.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .config import (
    BLAST_DATABASE,
    BLAST_ENDPOINT,
    BLAST_HITLIST_SIZE,
    BLAST_MATRIX,
    BLAST_POLL_DELAY,
    BLAST_PROGRAM,
    POLL_TIMEOUT,
)
from .errors import MissingJobIdentifierError, NoResultsError
from .http_client import EbioticClient
from .parsers import BlastResult, parse_blast_results
from .polling import Failed, Finished, JobHandle, PollOutcome, Running, poll
from .query import blast_results_form, blast_status_form, blast_submit_form

logger = logging.getLogger(__name__)


def parse_job_handle(response: str) -> JobHandle:
    """
    Pull the RID and RTOE out of a ``CMD=Put`` response.

    The values appear on lines like ``    RID = 8ZV1R6UU016`` inside the
    QBlastInfo comment block.

    Raises:
        MissingJobIdentifierError: no RID line was found.
    """
    rid = None
    rtoe = None
    for line in response.splitlines():
        line = line.strip()
        if line.startswith("RID = "):
            rid = line[len("RID = "):].strip()
        elif line.startswith("RTOE = "):
            try:
                rtoe = int(line[len("RTOE = "):].strip())
            except ValueError:
                logger.warning("Ignoring unreadable RTOE line: %s", line)
    if not rid:
        raise MissingJobIdentifierError(
            "BLAST submission response did not contain a RID", fragment=response
        )
    return JobHandle(rid, rtoe)


def _search_info(response: str) -> dict[str, str]:
    """Collect the ``key=value`` lines of a SearchInfo response."""
    info = {}
    for line in response.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep and key and " " not in key:
            info[key] = value.strip()
    return info


@dataclass(frozen=True)
class Blast:
    """
    Configuration for a BLAST search.

    Change settings by constructing with keywords or with
    ``dataclasses.replace(blast, program="blastn", database="core_nt")``.
    """

    endpoint: str = BLAST_ENDPOINT
    program: str = BLAST_PROGRAM
    database: str = BLAST_DATABASE
    matrix: str = BLAST_MATRIX
    hitlist_size: int = BLAST_HITLIST_SIZE
    email: str = ""
    tool: str = ""
    poll_delay: float = BLAST_POLL_DELAY
    timeout: Optional[float] = POLL_TIMEOUT

    def classify_status(self, response: str) -> PollOutcome:
        """Map a SearchInfo response onto a poll outcome."""
        status = _search_info(response).get("Status")
        if status == "READY":
            return Finished()
        if status == "WAITING":
            return Running(self.poll_delay)
        if status == "FAILED":
            return Failed("BLAST search failed on the server", status=status)
        if status == "UNKNOWN":
            return Failed("BLAST search has expired or the RID is unknown", status=status)
        logger.warning("Unrecognised BLAST status %r", status)
        return Failed(f"Unrecognised BLAST status: {status!r}", status=status)

    async def submit(self, query: str, client: EbioticClient) -> JobHandle:
        """Submit ``query`` and return its job handle."""
        form = blast_submit_form(
            query,
            program=self.program,
            database=self.database,
            matrix=self.matrix,
            hitlist_size=self.hitlist_size,
            email=self.email,
            tool=self.tool,
        )
        logger.info(
            "Submitting sequence (%d residues) to BLAST %s/%s",
            len(query.strip()), self.program, self.database,
        )
        response = await client.post_form(self.endpoint, form)
        handle = parse_job_handle(response)
        logger.info("BLAST RID %s, estimated %s s", handle.job_id, handle.estimated_seconds)
        return handle

    async def run(
        self,
        query: str,
        client: Optional[EbioticClient] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> BlastResult:
        """
        Search ``query`` and return the parsed hit list.

        Raises:
            EmptyQueryError: ``query`` is blank.
            MissingJobIdentifierError: the submission was not accepted.
            RemoteJobFailedError: the search failed or expired.
            NoResultsError: the search finished without hits.
            JobCancelledError: ``cancel`` was set or ``timeout`` elapsed.
        """
        if client is None:
            async with EbioticClient() as owned:
                return await self.run(query, owned, cancel)

        handle = await self.submit(query, client)
        search_info = await poll(
            client,
            self.endpoint,
            self.classify_status,
            form=blast_status_form(handle.job_id),
            timeout=self.timeout,
            cancel=cancel,
        )
        if _search_info(search_info).get("ThereAreHits") == "no":
            raise NoResultsError(f"BLAST search {handle.job_id} found no hits.")

        logger.info("Fetching BLAST results for %s", handle.job_id)
        raw = await client.post_form(self.endpoint, blast_results_form(handle.job_id))
        return parse_blast_results(raw)
