"""Client configuration constants."""

BLAST_ENDPOINT = "https://blast.ncbi.nlm.nih.gov/Blast.cgi"
EBI_TOOLS_ENDPOINT = "https://www.ebi.ac.uk/Tools/services/rest/"
EBI_DBFETCH_ENDPOINT = "https://www.ebi.ac.uk/Tools/dbfetch/dbfetch"
EBI_SEARCH_ENDPOINT = "https://www.ebi.ac.uk/ebisearch/ws/rest/"

# HTTP transport
REQUEST_TIMEOUT = 60.0  # seconds, per request
MAX_RETRIES = 3  # connection-level retries
USER_AGENT = "ebiotic/0.1"

# Seconds between status checks.
# NCBI asks clients not to poll a single RID more than once a minute.
BLAST_POLL_DELAY = 60.0
CLUSTALO_POLL_DELAY = 3.0

# Overall deadline for a poll loop in seconds; None polls until the
# remote job reaches a terminal state.
POLL_TIMEOUT = None

# Request shape limits
MAX_QUERY_COMMANDS = 4
DBFETCH_MAX_IDS = 200
EBI_SEARCH_MAX_SIZE = 100
CLUSTALO_MIN_SEQUENCES = 2

# BLAST submission defaults
BLAST_PROGRAM = "blastp"
BLAST_DATABASE = "nr"
BLAST_MATRIX = "BLOSUM62"
BLAST_HITLIST_SIZE = 10
