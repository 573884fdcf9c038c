"""Decoders for the payloads returned by the remote services.

Every parser is a pure function of the text it is given; parsing the same
payload twice yields equal values.
"""

import json
import logging
from dataclasses import dataclass
from io import StringIO
from typing import Iterable, Optional

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from .errors import NoResultsError, ResponseParseError, SequenceFormatError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# BLAST JSON2_S hit lists
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Description:
    """One database entry a hit maps to."""

    id: str
    accession: str
    title: str
    taxid: Optional[int] = None
    sciname: str = ""


@dataclass(frozen=True)
class Hsp:
    """High-scoring segment pair of a hit."""

    num: int
    bit_score: float
    score: int
    evalue: float
    identity: int
    hseq: str
    qseq: str = ""
    midline: str = ""
    query_from: Optional[int] = None
    query_to: Optional[int] = None
    hit_from: Optional[int] = None
    hit_to: Optional[int] = None
    align_len: Optional[int] = None
    gaps: Optional[int] = None

    def hseq_record(self) -> SeqRecord:
        """The aligned subject sequence as a SeqRecord."""
        return SeqRecord(Seq(self.hseq), id=f"hsp_{self.num}", description="")


@dataclass(frozen=True)
class Hit:
    num: int
    descriptions: tuple[Description, ...]
    length: int
    hsps: tuple[Hsp, ...]


@dataclass(frozen=True)
class BlastResult:
    """Ranked hit list for a single BLAST query."""

    query_id: str
    query_title: str
    query_len: int
    hits: tuple[Hit, ...]

    def __len__(self) -> int:
        return len(self.hits)


def _require(obj: dict, key: str, where: str):
    try:
        return obj[key]
    except (KeyError, TypeError) as e:
        raise ResponseParseError(f"BLAST result is missing '{key}' in {where}") from e


def _require_list(obj: dict, key: str, where: str) -> list:
    value = _require(obj, key, where)
    if not isinstance(value, list):
        raise ResponseParseError(f"BLAST result field '{key}' in {where} is not a list")
    return value


def _require_number(obj: dict, key: str, where: str):
    value = _require(obj, key, where)
    # bool is an int subclass but never a valid score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ResponseParseError(f"BLAST result field '{key}' in {where} is not a number")
    return value


def _parse_description(raw: dict) -> Description:
    return Description(
        id=_require(raw, "id", "hit description"),
        accession=_require(raw, "accession", "hit description"),
        title=raw.get("title", ""),
        taxid=raw.get("taxid"),
        sciname=raw.get("sciname", ""),
    )


def _parse_hsp(raw: dict) -> Hsp:
    where = "HSP"
    return Hsp(
        num=_require(raw, "num", where),
        bit_score=float(_require_number(raw, "bit_score", where)),
        score=_require_number(raw, "score", where),
        evalue=float(_require_number(raw, "evalue", where)),
        identity=_require_number(raw, "identity", where),
        hseq=_require(raw, "hseq", where),
        qseq=raw.get("qseq", ""),
        midline=raw.get("midline", ""),
        query_from=raw.get("query_from"),
        query_to=raw.get("query_to"),
        hit_from=raw.get("hit_from"),
        hit_to=raw.get("hit_to"),
        align_len=raw.get("align_len"),
        gaps=raw.get("gaps"),
    )


def _parse_hit(raw: dict) -> Hit:
    return Hit(
        num=_require(raw, "num", "hit"),
        descriptions=tuple(
            _parse_description(d) for d in _require_list(raw, "description", "hit")
        ),
        length=_require_number(raw, "len", "hit"),
        hsps=tuple(_parse_hsp(h) for h in _require_list(raw, "hsps", "hit")),
    )


def parse_blast_results(text: str) -> BlastResult:
    """
    Decode a BLAST ``JSON2_S`` report.

    The hit list lives at ``BlastOutput2[0].report.results.search``.

    Raises:
        ResponseParseError: the payload is not JSON or lacks required fields.
        NoResultsError: the search section is absent or null.
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"BLAST result is not valid JSON: {e}", fragment=text) from e

    search = parsed
    for key in ("BlastOutput2", 0, "report", "results", "search"):
        try:
            search = search[key]
        except (KeyError, IndexError, TypeError):
            search = None
        if search is None:
            raise NoResultsError("No results were found.")
    if not isinstance(search, dict):
        raise ResponseParseError("BLAST search section is not an object", fragment=text)

    raw_hits = search.get("hits") or []
    if not isinstance(raw_hits, list):
        raise ResponseParseError("BLAST hits section is not a list", fragment=text)
    hits = tuple(_parse_hit(h) for h in raw_hits)
    result = BlastResult(
        query_id=_require(search, "query_id", "search"),
        query_title=search.get("query_title", ""),
        query_len=_require(search, "query_len", "search"),
        hits=hits,
    )
    logger.info("Parsed %d BLAST hits for %s", len(hits), result.query_id)
    return result


# ---------------------------------------------------------------------------
# Clustal Omega percent identity matrix
# ---------------------------------------------------------------------------

def parse_pim(text: str) -> dict[str, list[float]]:
    """
    Parse a percent identity matrix into {sequence label: row of percentages}.

    Lines starting with ``#`` and blank lines are skipped. A leading row
    index such as ``1:`` is ignored.

    Raises:
        ResponseParseError: a row has no numeric values or a value is not a
            number, or the matrix has no rows at all.
    """
    pim: dict[str, list[float]] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        tokens = stripped.split()
        if tokens[0].endswith(":"):
            tokens = tokens[1:]
        if not tokens:
            raise ResponseParseError("Percent identity row has no sequence label", fragment=line)

        label, values = tokens[0], tokens[1:]
        try:
            row = [float(v) for v in values]
        except ValueError as e:
            raise ResponseParseError(
                f"Invalid percentage for sequence {label}: {e}", fragment=line
            ) from e
        if not row:
            raise ResponseParseError(
                f"No valid percentages found for sequence: {label}", fragment=line
            )
        pim[label] = row

    if not pim:
        raise ResponseParseError(
            "No valid lines found in Percent Identity Matrix (PIM).", fragment=text
        )
    return pim


# ---------------------------------------------------------------------------
# FASTA
# ---------------------------------------------------------------------------

def parse_fasta(text: str) -> list[SeqRecord]:
    """
    Parse FASTA text into SeqRecords.

    Empty text yields an empty list.

    Raises:
        SequenceFormatError: the text is not FASTA.
    """
    if not text.strip():
        return []
    if not text.lstrip().startswith(">"):
        raise SequenceFormatError(
            "Expected FASTA record starting with '>'", fragment=text
        )
    try:
        return list(SeqIO.parse(StringIO(text), "fasta"))
    except ValueError as e:
        raise SequenceFormatError(f"Unable to parse FASTA: {e}", fragment=text) from e


def format_fasta(records: Iterable[SeqRecord]) -> str:
    """Render records as FASTA without the trailing newline."""
    handle = StringIO()
    SeqIO.write(records, handle, "fasta")
    return handle.getvalue().rstrip("\n")
