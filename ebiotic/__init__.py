"""Async clients for NCBI BLAST and the EBI Clustal Omega, Dbfetch and Search services."""

__version__ = "0.1.0"
