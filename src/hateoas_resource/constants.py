"""Constants shared across the client runtime."""

# Media types
HAL_FORMS_JSON = "application/prs.hal-forms+json"
HAL_JSON = "application/hal+json"
JSON = "application/json"
SIREN_JSON = "application/vnd.siren+json"
JSON_API = "application/vnd.api+json"
COLLECTION_JSON = "application/vnd.collection+json"
HTML = "text/html"
EVENT_STREAM = "text/event-stream"
TEXT_PLAIN = "text/plain"
PROBLEM_JSON = "application/problem+json"
FORM_URLENCODED = "application/x-www-form-urlencoded"

# Content types with a +json suffix fall back to the HAL parser
JSON_SUFFIX_PATTERN = r"^application/[A-Za-z-.]+\+json"

# Headers that describe the entity rather than the exchange
ENTITY_HEADERS = (
    "Content-Type",
    "Content-Language",
    "Content-Location",
    "Deprecation",
    "ETag",
    "Expires",
    "Last-Modified",
    "Sunset",
    "Title",
    "Warning",
)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PRI", "PROPFIND", "REPORT", "SEARCH", "TRACE"})

# Relations that navigate within a paginated collection
PAGINATION_RELS = frozenset({"self", "first", "last", "prev", "previous", "next"})

# Relation that connects a cached representation to the URI that invalidates it
INVALIDATED_BY_REL = "inv-by"
INVALIDATES_REL = "invalidates"

DEFAULT_COLLECTION_REL = "items"
ITEM_REL = "item"

DEFAULT_CACHE_TTL_SECONDS = 30.0
DEFAULT_TIMEOUT_SECONDS = 30.0
USER_AGENT = "hateoas-resource/0.1.0"

NOOP_VENDOR = "hateoas-resource-noop"
