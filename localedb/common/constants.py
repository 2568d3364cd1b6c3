"""Application constants."""

USER_AGENT = "localedb-build/1.0 (+https://localedb.org)"
SCHEMA_VERSION = "1.0.0"
STAGES = (
    "fetch",
    "build",
)
COMMANDS = (*STAGES, "airports", "all")
EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 20
DEFAULT_BATCH_SIZE = 10
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "entity_type",
    "entity",
    "source",
    "event",
    "status",
    "batch",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)

SOURCE_BASE = "base"
SOURCE_SECONDARY = "secondary"
SOURCE_STATISTICS = "statistics"
SOURCE_DISPLAY_NAMES = "display_names"
SOURCE_NUMBERING_PLAN = "numbering_plan"

SOURCE_LABELS = {
    SOURCE_BASE: "SimpleLocalize",
    SOURCE_SECONDARY: "mledoze/countries",
    SOURCE_STATISTICS: "World Bank",
    SOURCE_DISPLAY_NAMES: "CLDR",
    SOURCE_NUMBERING_PLAN: "libphonenumber",
}

PROVENANCE_PRIMARY_ONLY = "primary-only"
PROVENANCE_SECONDARY_ONLY = "secondary-only"
PROVENANCE_MERGED = "merged"

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.0

NOT_APPLICABLE_TEMPLATE = "NA"
