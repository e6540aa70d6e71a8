# Statuses the dispatcher writes
STATUSES = ["PASS", "FAIL", "SKIP", "CRASH", "RUNNING", "APPEAL"]

# Order used when cycling the status filter in the dashboard
FILTER_CYCLE = [None, "PASS", "FAIL", "SKIP", "CRASH"]

# Event log suffix and session info suffix
LOG_SUFFIX = ".jsonl"
INFO_SUFFIX = ".json"

# Project-aggregate logs are named <prefix><hash>.jsonl
PROJECT_LOG_PREFIX = "_project_"

# Hex characters of the project path digest kept in aggregate log names
PROJECT_HASH_LENGTH = 12

# Names starting with these are never surfaced to discovery, list or tail
FIXTURE_PREFIX = "test-session"
IN_PROGRESS_PREFIX = ".tmp-"
EXCLUDED_PREFIXES = (FIXTURE_PREFIX, IN_PROGRESS_PREFIX)

# Size polling interval for watched files, in seconds
POLL_INTERVAL = 0.5

# Re-discovery interval for "all" and project modes, in seconds
RESCAN_INTERVAL = 5.0

# Entries printed from existing content in "all" and project modes
RECENT_ENTRY_LIMIT = 20

# Terminal width used when the real one cannot be determined
DEFAULT_WIDTH = 120

# Characters of a session id shown in headers, prefixes and the list table
SHORT_ID_LENGTH = 8

# Indent of the verbose block under the compact line
VERBOSE_INDENT = 10
