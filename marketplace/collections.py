"""Document collection names.

Collections are created implicitly on first write, so these constants are the
only place the "schema" is named.
"""

COLLECTION_WAITLIST = "waitlist"
COLLECTION_USERS = "users"
COLLECTION_BOOKINGS = "bookings"
COLLECTION_PROVIDERS = "providers"

ALL_COLLECTIONS = (
    COLLECTION_WAITLIST,
    COLLECTION_USERS,
    COLLECTION_BOOKINGS,
    COLLECTION_PROVIDERS,
)
