"""Tests for the NCBI BLAST driver."""

import asyncio
from dataclasses import replace

import pytest

from conftest import form_of
from ebiotic.blast import Blast, parse_job_handle
from ebiotic.config import BLAST_ENDPOINT
from ebiotic.errors import (
    EmptyQueryError,
    JobTimeoutError,
    MissingJobIdentifierError,
    NetworkError,
    NoResultsError,
    RemoteJobFailedError,
)
from ebiotic.polling import Failed, Finished, Running

QUERY = "MDDREDLVYQAKLAEQAERYDEMVESMKKVAGMDVELTVEERNLLSVA"

SUBMITTED = """<!--QBlastInfoBegin
    RID = 8ZV1R6UU016
    RTOE = 27
QBlastInfoEnd
-->
"""


def search_info(status, hits="yes"):
    return f"<!--QBlastInfoBegin\n\tStatus={status}\n\tThereAreHits={hits}\nQBlastInfoEnd\n-->\n"


@pytest.fixture
def blast():
    return Blast(poll_delay=0, email="me@example.org", tool="ebiotic-tests")


class TestParseJobHandle:
    def test_rid_and_rtoe(self):
        handle = parse_job_handle(SUBMITTED)
        assert handle.job_id == "8ZV1R6UU016"
        assert handle.estimated_seconds == 27

    def test_missing_rid(self):
        with pytest.raises(MissingJobIdentifierError) as excinfo:
            parse_job_handle("<html><body>Server busy</body></html>")
        assert "Server busy" in excinfo.value.fragment

    def test_unreadable_rtoe(self):
        handle = parse_job_handle("RID = ABC123\nRTOE = soon\n")
        assert handle.job_id == "ABC123"
        assert handle.estimated_seconds is None


class TestClassifyStatus:
    def test_ready(self, blast):
        assert blast.classify_status(search_info("READY")) == Finished()

    def test_waiting_uses_poll_delay(self):
        assert Blast(poll_delay=60).classify_status(search_info("WAITING")) == Running(60)

    @pytest.mark.parametrize("status", ["FAILED", "UNKNOWN"])
    def test_failed(self, blast, status):
        outcome = blast.classify_status(search_info(status))
        assert isinstance(outcome, Failed)
        assert outcome.status == status

    def test_unrecognised_status_fails_closed(self, blast, caplog):
        outcome = blast.classify_status(search_info("ON_FIRE"))
        assert isinstance(outcome, Failed)
        assert "ON_FIRE" in caplog.text

    def test_no_status_line(self, blast):
        assert isinstance(blast.classify_status("<html></html>"), Failed)


class TestRun:
    def test_full_run(self, remote, blast, blast_json):
        remote.add("POST", BLAST_ENDPOINT, text=SUBMITTED)
        remote.add("POST", BLAST_ENDPOINT, text=search_info("WAITING"))
        remote.add("POST", BLAST_ENDPOINT, text=search_info("READY"))
        remote.add("POST", BLAST_ENDPOINT, text=blast_json)

        result = asyncio.run(blast.run(QUERY, remote.client()))

        assert len(result) == 2
        assert result.hits[0].descriptions[0].accession == "NP_006752"

        forms = [form_of(r) for r in remote.requests]
        assert len(forms) == 4
        assert ("CMD", "Put") in forms[0]
        assert ("QUERY", QUERY) in forms[0]
        assert ("EMAIL", "me@example.org") in forms[0]
        assert ("TOOL", "ebiotic-tests") in forms[0]
        assert forms[1] == forms[2] == [
            ("CMD", "Get"), ("FORMAT_OBJECT", "SearchInfo"), ("RID", "8ZV1R6UU016"),
        ]
        assert ("FORMAT_TYPE", "JSON2_S") in forms[3]

    def test_submit_uses_configured_search(self, remote, blast, blast_json):
        remote.add("POST", BLAST_ENDPOINT, text=SUBMITTED)
        remote.add("POST", BLAST_ENDPOINT, text=search_info("READY"))
        remote.add("POST", BLAST_ENDPOINT, text=blast_json)

        blastn = replace(blast, program="blastn", database="core_nt", hitlist_size=50)
        asyncio.run(blastn.run("ACGTACGT", remote.client()))

        submitted = dict(form_of(remote.requests[0]))
        assert submitted["PROGRAM"] == "blastn"
        assert submitted["DATABASE"] == "core_nt"
        assert submitted["HITLIST_SIZE"] == "50"

    def test_missing_rid(self, remote, blast):
        remote.add("POST", BLAST_ENDPOINT, text="<html>Error</html>")
        with pytest.raises(MissingJobIdentifierError):
            asyncio.run(blast.run(QUERY, remote.client()))
        assert len(remote.requests) == 1

    def test_failed_search(self, remote, blast):
        remote.add("POST", BLAST_ENDPOINT, text=SUBMITTED)
        remote.add("POST", BLAST_ENDPOINT, text=search_info("FAILED"))
        with pytest.raises(RemoteJobFailedError) as excinfo:
            asyncio.run(blast.run(QUERY, remote.client()))
        assert excinfo.value.status == "FAILED"
        assert len(remote.requests) == 2

    def test_unknown_status_never_reaches_results(self, remote, blast):
        remote.add("POST", BLAST_ENDPOINT, text=SUBMITTED)
        remote.add("POST", BLAST_ENDPOINT, text=search_info("SOMETHING_NEW"))
        with pytest.raises(RemoteJobFailedError):
            asyncio.run(blast.run(QUERY, remote.client()))
        assert not any(("FORMAT_TYPE", "JSON2_S") in form_of(r) for r in remote.requests)

    def test_no_hits(self, remote, blast):
        remote.add("POST", BLAST_ENDPOINT, text=SUBMITTED)
        remote.add("POST", BLAST_ENDPOINT, text=search_info("READY", hits="no"))
        with pytest.raises(NoResultsError):
            asyncio.run(blast.run(QUERY, remote.client()))
        assert len(remote.requests) == 2

    def test_empty_query_sends_nothing(self, remote, blast):
        with pytest.raises(EmptyQueryError):
            asyncio.run(blast.run("   ", remote.client()))
        assert remote.requests == []

    def test_submission_http_error(self, remote, blast):
        remote.add("POST", BLAST_ENDPOINT, text="busy", status=503)
        with pytest.raises(NetworkError) as excinfo:
            asyncio.run(blast.run(QUERY, remote.client()))
        assert excinfo.value.status_code == 503

    def test_timeout(self, remote, blast):
        remote.add("POST", BLAST_ENDPOINT, text=SUBMITTED)
        remote.add("POST", BLAST_ENDPOINT, text=search_info("WAITING"))
        with pytest.raises(JobTimeoutError):
            asyncio.run(replace(blast, timeout=0).run(QUERY, remote.client()))
