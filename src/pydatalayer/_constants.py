"""Internal constants shared across the library."""

BASE_URL = "http://localhost:8000"
USER_AGENT = "pydatalayer"

# ------------------------------------------------------------------
# Versioning headers
# ------------------------------------------------------------------

#: Sent on conditional saves, carries the last observed version token.
REFERENCE_HEADER = "X-Datalayer-Reference"
#: Returned by the server on loads and saves, carries the new version token.
VERSION_HEADER = "X-Datalayer-Version"

#: HTTP status the server uses for "changed since you last read it".
PRECONDITION_FAILED = 412

# ------------------------------------------------------------------
# Payload keys
# ------------------------------------------------------------------

OPTIONS_KEY = "_layer_options"
#: Older servers stored the options blob under this key.
LEGACY_OPTIONS_KEY = "_storage"

#: Property names starting with this prefix are never indexed.
RESERVED_PREFIX = "_"

# ------------------------------------------------------------------
# Geometry kinds
# ------------------------------------------------------------------

POINT_TYPES: frozenset[str] = frozenset({"Point"})
LINE_TYPES: frozenset[str] = frozenset({"LineString", "MultiLineString"})
POLYGON_TYPES: frozenset[str] = frozenset({"Polygon", "MultiPolygon"})

DEFAULT_PROXY_TTL = 300
