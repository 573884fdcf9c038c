"""Build the exact request each remote service expects.

Everything in this module is a pure function of its arguments and the
catalog: nothing here performs I/O, so invalid requests are rejected before
a connection is opened.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Union
from urllib.parse import quote

from .catalog import (
    CatalogTag,
    DataFormat,
    DbfetchDb,
    DbfetchStyle,
    EbiSearchDomain,
    available_formats,
    wire_name,
)
from .config import DBFETCH_MAX_IDS, EBI_SEARCH_MAX_SIZE, MAX_QUERY_COMMANDS
from .errors import (
    CommandOrderError,
    EmptyOrOversizedQueryError,
    EmptyQueryError,
    RequestValidationError,
    TooManyCommandsError,
    UnsupportedFormatError,
)
from .http_client import FormData


def _quote(text: str) -> str:
    return quote(text, safe="")


@dataclass(frozen=True)
class AccessionIds:
    """An ordered, immutable list of database accession ids."""

    ids: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "ids", tuple(i.strip() for i in self.ids if i.strip()))

    def __len__(self) -> int:
        return len(self.ids)

    def __str__(self) -> str:
        return ",".join(self.ids)

    def joined(self) -> str:
        """Comma-joined id segment, URL-quoted except for the separators."""
        return ",".join(_quote(i) for i in self.ids)


def _as_ids(ids: Union[AccessionIds, Iterable[str]]) -> AccessionIds:
    return ids if isinstance(ids, AccessionIds) else AccessionIds(ids)


def check_format(tag: CatalogTag, fmt: DataFormat) -> None:
    """Raise UnsupportedFormatError if ``tag`` cannot return ``fmt``."""
    if fmt not in available_formats(tag):
        raise UnsupportedFormatError(wire_name(fmt), wire_name(tag))


# ---------------------------------------------------------------------------
# Dbfetch
# ---------------------------------------------------------------------------

def build_dbfetch_url(
    endpoint: str,
    db: DbfetchDb,
    ids: Union[AccessionIds, Iterable[str]],
    fmt: DataFormat = DataFormat.FASTA,
    style: DbfetchStyle = DbfetchStyle.RAW,
) -> str:
    """
    Build a Dbfetch GET URL.

    Raises:
        UnsupportedFormatError: ``fmt`` is not offered by ``db``.
        EmptyQueryError: no ids were given.
        EmptyOrOversizedQueryError: more ids than Dbfetch serves per request.
    """
    check_format(db, fmt)
    ids = _as_ids(ids)
    if not ids:
        raise EmptyQueryError("At least one accession id is required", field="id")
    if len(ids) > DBFETCH_MAX_IDS:
        raise EmptyOrOversizedQueryError(
            f"Dbfetch accepts at most {DBFETCH_MAX_IDS} ids per request, got {len(ids)}",
            field="id",
        )
    return f"{endpoint}?db={db}&format={fmt}&style={style}&id={ids.joined()}"


# ---------------------------------------------------------------------------
# EBI Search
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Query:
    """Free-text search: ``?query=<text>``."""

    text: str
    terminal = True

    def render(self) -> str:
        return f"?query={_quote(self.text)}"

    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class Entry:
    """Retrieve entries by id: ``entry/<ids>``."""

    ids: AccessionIds
    terminal = False

    def __post_init__(self):
        object.__setattr__(self, "ids", _as_ids(self.ids))

    def render(self) -> str:
        if not self.ids:
            raise EmptyQueryError("Entry command needs at least one id", field="ids")
        return f"entry/{self.ids.joined()}"


@dataclass(frozen=True)
class Xref:
    """Cross-references, optionally restricted to one target domain."""

    target: Optional[EbiSearchDomain] = None
    terminal = False

    def render(self) -> str:
        return "xref" if self.target is None else f"xref/{self.target}"


@dataclass(frozen=True)
class MoreLikeThis:
    target: Optional[EbiSearchDomain] = None
    terminal = False

    def render(self) -> str:
        return "morelikethis" if self.target is None else f"morelikethis/{self.target}"


@dataclass(frozen=True)
class TopTerms:
    field_id: str
    terminal = False

    def render(self) -> str:
        if not self.field_id.strip():
            raise EmptyQueryError("TopTerms command needs a field id", field="field_id")
        return f"topterms/{_quote(self.field_id)}"


@dataclass(frozen=True)
class AutoComplete:
    """Term suggestions: ``autocomplete?term=<term>``."""

    term: str
    terminal = True

    def render(self) -> str:
        return f"autocomplete?term={_quote(self.term)}"

    def is_blank(self) -> bool:
        return not self.term.strip()


@dataclass(frozen=True)
class SeqToolResults:
    """Search results of a finished EBI sequence-tool job."""

    tool_id: str
    job_id: str
    terminal = True

    def render(self) -> str:
        return (
            f"seqtoolresults?toolid={_quote(self.tool_id)}"
            f"&jobid={_quote(self.job_id)}"
        )

    def is_blank(self) -> bool:
        return not (self.tool_id.strip() and self.job_id.strip())


QueryCommand = Union[Query, Entry, Xref, MoreLikeThis, TopTerms, AutoComplete, SeqToolResults]


class SortOrder:
    ASCENDING = "ascending"
    DESCENDING = "descending"


@dataclass(frozen=True)
class EbiSearchQuery:
    """
    A chain of EBI Search commands plus result options.

    Commands render as URL path segments in order; commands that carry
    free text (Query, AutoComplete, SeqToolResults) become the query string
    and therefore have to come last.
    """

    commands: tuple = ()
    filters: dict[str, str] = field(default_factory=dict)
    size: Optional[int] = None
    start: Optional[int] = None
    fields: tuple[str, ...] = ()
    sort: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "commands", tuple(self.commands))
        object.__setattr__(self, "fields", tuple(self.fields))

    def with_command(self, command: QueryCommand) -> "EbiSearchQuery":
        """Return a copy with ``command`` appended to the chain."""
        return replace(self, commands=self.commands + (command,))

    def build(self) -> str:
        """
        Render the command chain and options as ``path?params``.

        Raises:
            EmptyQueryError: no commands, or a command with blank text.
            TooManyCommandsError: more than MAX_QUERY_COMMANDS commands.
            CommandOrderError: a free-text command that is not last.
            EmptyOrOversizedQueryError: ``size`` beyond the service page cap.
        """
        if not self.commands:
            raise EmptyQueryError("Query has no commands", field="commands")
        if len(self.commands) > MAX_QUERY_COMMANDS:
            raise TooManyCommandsError(len(self.commands), MAX_QUERY_COMMANDS)

        last = len(self.commands) - 1
        url = ""
        for position, command in enumerate(self.commands):
            if command.terminal:
                if position != last:
                    raise CommandOrderError(type(command).__name__, position)
                if command.is_blank():
                    raise EmptyQueryError(
                        f"{type(command).__name__} command has no text", field="commands"
                    )
            segment = command.render()
            url += segment if segment.startswith("?") else f"/{segment}"

        params = []
        if self.filters:
            params.append(
                "filter=" + ",".join(f"{_quote(k)}:{_quote(v)}" for k, v in self.filters.items())
            )
        if self.size is not None:
            if not 0 <= self.size <= EBI_SEARCH_MAX_SIZE:
                raise EmptyOrOversizedQueryError(
                    f"size must be between 0 and {EBI_SEARCH_MAX_SIZE}, got {self.size}",
                    field="size",
                )
            params.append(f"size={self.size}")
        if self.start is not None:
            if self.start < 0:
                raise RequestValidationError("start must not be negative", field="start")
            params.append(f"start={self.start}")
        if self.fields:
            params.append("fields=" + ",".join(_quote(f) for f in self.fields))
        if self.sort:
            params.append(
                "sort=" + ",".join(f"{_quote(k)}:{order}" for k, order in self.sort.items())
            )
        return append_params(url, params)


def append_params(url: str, params: list[str]) -> str:
    """Append pre-encoded ``key=value`` pairs, starting a query string if needed."""
    for param in params:
        url += ("&" if "?" in url else "?") + param
    return url


def ebi_search_url(
    endpoint: str,
    domain: EbiSearchDomain,
    query: EbiSearchQuery,
    fmt: DataFormat = DataFormat.JSON,
) -> str:
    """Full EBI Search URL for ``query`` against ``domain``."""
    check_format(domain, fmt)
    return append_params(f"{endpoint}{domain}{query.build()}", [f"format={fmt}"])


# ---------------------------------------------------------------------------
# NCBI BLAST
# ---------------------------------------------------------------------------

def blast_submit_form(
    query: str,
    program: str,
    database: str,
    matrix: str,
    hitlist_size: int,
    email: str = "",
    tool: str = "",
) -> FormData:
    """Form body for a ``CMD=Put`` BLAST submission."""
    if not query.strip():
        raise EmptyQueryError("BLAST query sequence is empty", field="query")
    if hitlist_size < 1:
        raise RequestValidationError("hitlist_size must be at least 1", field="hitlist_size")
    return [
        ("CMD", "Put"),
        ("PROGRAM", program),
        ("DATABASE", database),
        ("MATRIX", matrix),
        ("HITLIST_SIZE", str(hitlist_size)),
        ("EMAIL", email),
        ("TOOL", tool),
        ("QUERY", query.strip()),
    ]


def blast_status_form(rid: str) -> FormData:
    return [("CMD", "Get"), ("FORMAT_OBJECT", "SearchInfo"), ("RID", rid)]


def blast_results_form(rid: str) -> FormData:
    return [("CMD", "Get"), ("FORMAT_TYPE", "JSON2_S"), ("RID", rid)]
