"""Clustal Omega multiple sequence alignment on the EBI Job Dispatcher."""

import asyncio
import logging
from dataclasses import dataclass
from io import StringIO
from typing import Optional, Sequence

from Bio import AlignIO, Phylo
from Bio.Phylo.NewickIO import NewickError
from Bio.SeqRecord import SeqRecord

from .config import (
    CLUSTALO_MIN_SEQUENCES,
    CLUSTALO_POLL_DELAY,
    EBI_TOOLS_ENDPOINT,
    POLL_TIMEOUT,
)
from .errors import (
    EmptyOrOversizedQueryError,
    EmptyQueryError,
    MissingJobIdentifierError,
    RequestValidationError,
    ResponseParseError,
)
from .http_client import EbioticClient, FormData
from .parsers import format_fasta, parse_pim
from .polling import Failed, Finished, JobHandle, PollOutcome, Running, poll

logger = logging.getLogger(__name__)

# Result types fetched once the job has finished
ALIGNMENT_RESULT = "aln-clustal_num"
PIM_RESULT = "pim"
TREE_RESULT = "phylotree"


@dataclass(frozen=True)
class ClustaloResult:
    """Alignment, percent identity matrix and guide tree of one job."""

    aln_clustal_num: str
    pim: dict[str, list[float]]
    phylotree: str

    def alignment(self):
        """Parse the Clustal alignment into a Bio.Align.MultipleSeqAlignment."""
        try:
            return AlignIO.read(StringIO(self.aln_clustal_num), "clustal")
        except ValueError as e:
            raise ResponseParseError(
                f"Unable to parse Clustal alignment: {e}", fragment=self.aln_clustal_num
            ) from e

    def tree(self):
        """Parse the Newick guide tree into a Bio.Phylo tree."""
        try:
            return Phylo.read(StringIO(self.phylotree), "newick")
        except (ValueError, NewickError) as e:
            raise ResponseParseError(
                f"Unable to parse guide tree: {e}", fragment=self.phylotree
            ) from e


STATUS_OUTCOMES = {
    "FINISHED": Finished(),
    "ERROR": Failed("Clustal Omega job reported an error", status="ERROR"),
    "FAILURE": Failed("Clustal Omega job failed", status="FAILURE"),
    "NOT_FOUND": Failed("Clustal Omega job was not found", status="NOT_FOUND"),
}
RUNNING_STATUSES = {"RUNNING", "QUEUED"}


@dataclass(frozen=True)
class Clustalo:
    """
    Configuration for Clustal Omega jobs.

    The Job Dispatcher requires a valid contact ``email`` on every job.
    """

    email: str = ""
    endpoint: str = f"{EBI_TOOLS_ENDPOINT}clustalo/"
    poll_delay: float = CLUSTALO_POLL_DELAY
    timeout: Optional[float] = POLL_TIMEOUT

    def classify_status(self, response: str) -> PollOutcome:
        status = response.strip()
        if status in RUNNING_STATUSES:
            return Running(self.poll_delay)
        if status in STATUS_OUTCOMES:
            return STATUS_OUTCOMES[status]
        logger.warning("Unrecognised Clustal Omega status %r", status)
        return Failed(f"Unrecognised Clustal Omega status: {status!r}", status=status)

    def submit_form(self, records: Sequence[SeqRecord]) -> FormData:
        """Validate the input and build the ``run`` form body."""
        if not records:
            raise EmptyQueryError("No sequences given to align", field="sequence")
        if len(records) < CLUSTALO_MIN_SEQUENCES:
            raise EmptyOrOversizedQueryError(
                f"Clustal Omega needs at least {CLUSTALO_MIN_SEQUENCES} sequences, "
                f"got {len(records)}",
                field="sequence",
            )
        if not self.email.strip():
            raise RequestValidationError("An email address is required", field="email")
        return [("email", self.email), ("sequence", format_fasta(records))]

    async def submit(self, records: Sequence[SeqRecord], client: EbioticClient) -> JobHandle:
        form = self.submit_form(records)
        logger.info("Submitting %d sequences to Clustal Omega", len(records))
        job_id = (await client.post_form(f"{self.endpoint}run/", form)).strip()
        if not job_id or any(c.isspace() for c in job_id):
            raise MissingJobIdentifierError(
                "Clustal Omega did not return a job id", fragment=job_id
            )
        logger.info("Clustal Omega job %s submitted", job_id)
        return JobHandle(job_id)

    def result_url(self, job_id: str, result_type: str) -> str:
        return f"{self.endpoint}result/{job_id}/{result_type}"

    async def run(
        self,
        records: Sequence[SeqRecord],
        client: Optional[EbioticClient] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> ClustaloResult:
        """
        Align ``records`` and return the alignment, PIM and guide tree.

        The three result documents are fetched concurrently; if any of them
        fails the others are cancelled and the whole run fails.
        """
        if client is None:
            async with EbioticClient() as owned:
                return await self.run(records, owned, cancel)

        records = list(records)
        handle = await self.submit(records, client)
        await poll(
            client,
            f"{self.endpoint}status/{handle.job_id}",
            self.classify_status,
            timeout=self.timeout,
            cancel=cancel,
        )

        logger.info("Fetching Clustal Omega results for %s", handle.job_id)
        fetches = [
            asyncio.ensure_future(client.get(self.result_url(handle.job_id, result_type)))
            for result_type in (ALIGNMENT_RESULT, PIM_RESULT, TREE_RESULT)
        ]
        try:
            aln, pim, tree = await asyncio.gather(*fetches)
        except Exception:
            # One failed fetch fails the run; stop the others before the
            # client is closed
            for fetch in fetches:
                fetch.cancel()
            await asyncio.gather(*fetches, return_exceptions=True)
            raise
        return ClustaloResult(aln_clustal_num=aln, pim=parse_pim(pim), phylotree=tree)
