from eventbuckets.storage.database import EventStore
from eventbuckets.storage.schema import SCHEMAS

__all__ = ["EventStore", "SCHEMAS"]
