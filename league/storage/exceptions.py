"""
Errors raised by the league storage backends.

Backends translate driver failures (sqlite3, PostgREST) into this
hierarchy so services only ever catch DatabaseError:
- ConnectionError and ConfigurationError come from initialize()
- SchemaError means the league tables could not be created
- QueryError wraps a failed read or write
- DocumentNotFoundError is raised by writes that update a document in
  place when the document is gone
"""


class DatabaseError(Exception):
    """Base class for league storage failures."""
    pass


class ConnectionError(DatabaseError):
    """The backend could not be reached or opened."""
    pass


class ConfigurationError(DatabaseError):
    """DB_TYPE or backend credentials are missing or unusable."""
    pass


class SchemaError(DatabaseError):
    """League tables could not be created."""
    pass


class QueryError(DatabaseError):
    """A read or write against the backend failed."""
    pass


class DocumentNotFoundError(DatabaseError):
    """The document targeted by an in-place update does not exist."""

    def __init__(self, collection: str, document_id: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"{collection} document {document_id} does not exist")
