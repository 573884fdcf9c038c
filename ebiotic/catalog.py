"""Databases, search domains and the return formats each one offers.

The wire names here are the exact tokens the EBI services expect in their
query strings; see https://www.ebi.ac.uk/Tools/dbfetch/dbfetch/dbfetch.databases
for the Dbfetch list.
"""

from enum import Enum
from typing import Union


class DataFormat(Enum):
    """Return formats understood by the EBI data services."""

    FASTA = "fasta"
    JSON = "json"
    PDB = "pdb"
    MMCIF = "mmcif"
    XML = "xml"
    OBO = "obo"
    CSV = "csv"
    TSV = "tab"
    GFF3 = "gff3"
    GFF2 = "gff2"
    PATENT_EQUIVALENTS = "patent_equivalents"

    def __str__(self) -> str:
        return self.value


class DbfetchStyle(Enum):
    RAW = "raw"
    HTML = "html"

    def __str__(self) -> str:
        return self.value


class DbfetchDb(Enum):
    """Databases served by Dbfetch, keyed by their short code."""

    ALPHAFOLD_DB = "afdb"
    CDP = "cdp"
    CHEMBL_TARGETS = "chembl"
    EDAM = "edam"
    EMDB = "emdb"
    ENA_CODING = "ena_coding"
    ENA_GEOSPATIAL = "ena_geospatial"
    ENA_NONCODING = "ena_noncoding"
    ENA_RRNA = "ena_rrna"
    ENA_SEQUENCE = "ena_sequence"
    ENA_SEQUENCE_CONSTRUCTED = "ena_sequence_con"
    ENA_SEQUENCE_CONSTRUCTED_EXPANDED = "ena_sequence_conexp"
    ENA_SVA = "ena_sva"
    ENSEMBL_GENE = "ensemblgene"
    ENSEMBL_GENOMES_GENE = "ensemblgenomesgene"
    ENSEMBL_GENOMES_TRANSCRIPT = "ensemblgenomestranscript"
    ENSEMBL_TRANSCRIPT = "ensembltranscript"
    EPO_PROTEINS = "epo_prt"
    HGNC = "hgnc"
    IMGT_HLA_CDS = "imgthlacds"
    IMGT_HLA_GENOMIC = "imgthlagen"
    IMGT_HLA_PROTEIN = "imgthlapro"
    IMGT_LIGM = "imgtligm"
    INTERPRO = "interpro"
    IPD_KIR_CDS = "ipdkircds"
    IPD_KIR_GENOMIC = "ipdkirgen"
    IPD_KIR_PROTEIN = "ipdkirpro"
    IPD_MHC_CDS = "ipdmhccds"
    IPD_MHC_GENOMIC = "ipdmhcgen"
    IPD_MHC_PROTEIN = "ipdmhcpro"
    IPD_NHKIR_CDS = "ipdnhkircds"
    IPD_NHKIR_GENOMIC = "ipdnhkirgen"
    IPD_NHKIR_PROTEIN = "ipdnhkirpro"
    IPRMC = "iprmc"
    IPRMC_UNIPARC = "iprmcuniparc"
    JPO_PROTEINS = "jpo_prt"
    KIPO_PROTEINS = "kipo_prt"
    MEDLINE = "medline"
    MEROPS_MP = "mp"
    MEROPS_MPEP = "mpep"
    MEROPS_MPRO = "mpro"
    PATENT_DNA_NRL1 = "nrnl1"
    PATENT_DNA_NRL2 = "nrnl2"
    PATENT_PROTEIN_NRL1 = "nrpl1"
    PATENT_PROTEIN_NRL2 = "nrpl2"
    PATENT_EQUIVALENTS = "patent_equivalents"
    PDB = "pdb"
    PDBE_KB = "pdbekb"
    REFSEQ_NUCLEOTIDE = "refseqn"
    REFSEQ_PROTEIN = "refseqp"
    TAXONOMY = "taxonomy"
    UNIPARC = "uniparc"
    UNIPROTKB = "uniprotkb"
    UNIREF100 = "uniref100"
    UNIREF50 = "uniref50"
    UNIREF90 = "uniref90"
    UNISAVE = "unisave"
    USPTO_PROTEINS = "uspto_prt"

    def __str__(self) -> str:
        return self.value


class EbiSearchDomain(Enum):
    """EBI Search domain identifiers."""

    ALL = "allebi"
    UNIPROT = "uniprot"
    UNIPARC = "uniparc"
    UNIREF = "uniref"
    ENA = "embl"
    NUCLEOTIDE_SEQUENCES = "nucleotideSequences"
    ARRAY_EXPRESS = "arrayexpress"
    EXPRESSION_ATLAS = "atlas-experiments"
    BIOMODELS = "biomodels"
    BIOSAMPLES = "biosamples"
    CHEMBL_TARGET = "chembl-target"
    COMPLEX_PORTAL = "complexportal"
    EGA = "ega"
    ENSEMBL_GENE = "ensembl_gene"
    ENSEMBL_GENOMES_GENE = "ensemblGenomes_gene"
    INTERPRO = "interpro"
    METABOLIGHTS = "metabolights"
    PDBE = "pdbe"
    PRIDE = "pride"
    REACTOME = "reactome"
    SEQUENCE_READ_ARCHIVE = "sra-sample"

    def __str__(self) -> str:
        return self.value


F = DataFormat

DBFETCH_FORMATS: dict[DbfetchDb, frozenset[DataFormat]] = {
    DbfetchDb.ALPHAFOLD_DB: frozenset({F.JSON, F.FASTA, F.PDB, F.MMCIF}),
    DbfetchDb.CDP: frozenset({F.XML, F.FASTA}),
    DbfetchDb.CHEMBL_TARGETS: frozenset({F.FASTA}),
    DbfetchDb.EDAM: frozenset({F.OBO}),
    DbfetchDb.EMDB: frozenset({F.XML}),
    DbfetchDb.ENSEMBL_GENE: frozenset({F.FASTA, F.CSV, F.GFF3, F.GFF2}),
    DbfetchDb.ENSEMBL_GENOMES_GENE: frozenset({F.FASTA, F.CSV, F.GFF3, F.GFF2}),
    DbfetchDb.HGNC: frozenset({F.TSV}),
    DbfetchDb.INTERPRO: frozenset({F.TSV}),
    DbfetchDb.IPRMC: frozenset({F.GFF2}),
    DbfetchDb.IPRMC_UNIPARC: frozenset({F.GFF2}),
    DbfetchDb.MEDLINE: frozenset({F.XML}),
    DbfetchDb.PATENT_EQUIVALENTS: frozenset({F.PATENT_EQUIVALENTS}),
    DbfetchDb.PDB: frozenset({F.FASTA, F.PDB, F.MMCIF}),
    DbfetchDb.PDBE_KB: frozenset({F.FASTA, F.PDB, F.MMCIF}),
    DbfetchDb.REFSEQ_NUCLEOTIDE: frozenset({F.JSON, F.FASTA}),
    DbfetchDb.TAXONOMY: frozenset({F.XML}),
    DbfetchDb.UNIPROTKB: frozenset({F.GFF3, F.FASTA}),
}
# Everything not listed above is a sequence database served as FASTA only
for _db in DbfetchDb:
    DBFETCH_FORMATS.setdefault(_db, frozenset({F.FASTA}))

_SEQUENCE_DOMAINS = {
    EbiSearchDomain.UNIPROT,
    EbiSearchDomain.UNIPARC,
    EbiSearchDomain.UNIREF,
    EbiSearchDomain.ENA,
    EbiSearchDomain.NUCLEOTIDE_SEQUENCES,
}

EBI_SEARCH_FORMATS: dict[EbiSearchDomain, frozenset[DataFormat]] = {
    domain: (
        frozenset({F.JSON, F.XML, F.FASTA})
        if domain in _SEQUENCE_DOMAINS
        else frozenset({F.JSON, F.XML})
    )
    for domain in EbiSearchDomain
}

CatalogTag = Union[DbfetchDb, EbiSearchDomain]


def available_formats(tag: CatalogTag) -> frozenset[DataFormat]:
    """Return the formats a Dbfetch database or EBI Search domain can return."""
    if isinstance(tag, DbfetchDb):
        return DBFETCH_FORMATS[tag]
    if isinstance(tag, EbiSearchDomain):
        return EBI_SEARCH_FORMATS[tag]
    raise TypeError(f"Not a catalog entry: {tag!r}")


def wire_name(tag: Union[CatalogTag, DataFormat, DbfetchStyle]) -> str:
    """Return the token a remote service expects for ``tag``."""
    return tag.value
