"""Named constants shared across the catalog migration tool."""

# Batching
MAX_BATCH_SIZE = 1000
DEFAULT_BATCH_SIZE = 500

# Sorting / temporal properties
MODIFIED_PROPERTY = "modified"
CREATED_PROPERTY = "created"
TEMPORAL_PROPERTIES = (MODIFIED_PROPERTY, CREATED_PROPERTY)
SORT_DESCENDING = "DESC"

# Confirmation prompt
CONFIRMATION_QUESTION = "Do you wish to continue? (yes/no)"
CONFIRMATION_ANSWER = "yes"

# HTTP provider
HTTP_DEFAULT_TIMEOUT = 30
HTTP_BAD_REQUEST = 400
HTTP_UNPROCESSABLE_ENTITY = 422
HTTP_RATE_LIMIT = 429
HTTP_BAD_GATEWAY = 502
HTTP_SERVER_ERROR_MIN = 500
HTTP_MAX_BACKOFF_SECONDS = 60

# Output files
REPORT_FILENAME = "migration_report.yaml"
FAILED_RECORDS_FILENAME = "failed_records.jsonl"
OUTPUT_ROOT = "migration_logs"
