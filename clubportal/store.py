"""Boundary between the application and the Firestore data store."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Any, Iterator, Protocol, TypeVar

from firebase_admin import firestore
from google.api_core import exceptions as gexc

from .errors import ErrorKind, SchemaError, StoreError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

# Order matters: subclasses before their bases.
_ERROR_KINDS: tuple[tuple[type[Exception], ErrorKind], ...] = (
    (gexc.PermissionDenied, ErrorKind.PERMISSION_DENIED),
    (gexc.Forbidden, ErrorKind.PERMISSION_DENIED),
    (gexc.Unauthenticated, ErrorKind.PERMISSION_DENIED),
    (gexc.NotFound, ErrorKind.NOT_FOUND),
    (gexc.AlreadyExists, ErrorKind.CONFLICT),
    (gexc.Conflict, ErrorKind.CONFLICT),
    (gexc.Aborted, ErrorKind.CONFLICT),
    (gexc.ServiceUnavailable, ErrorKind.UNAVAILABLE),
    (gexc.DeadlineExceeded, ErrorKind.UNAVAILABLE),
    (gexc.InvalidArgument, ErrorKind.INVALID),
    (gexc.FailedPrecondition, ErrorKind.INVALID),
    (gexc.BadRequest, ErrorKind.INVALID),
)


class Record(Protocol):
    """A typed record decoded from a stored document."""

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> Any: ...


R = TypeVar("R", bound=Record)


def get_db() -> Client:
    """Return the Firestore client."""
    return firestore.client()


def classify(exc: Exception) -> ErrorKind:
    """Map a Google API exception onto an :class:`ErrorKind`."""
    for exc_type, kind in _ERROR_KINDS:
        if isinstance(exc, exc_type):
            return kind
    return ErrorKind.UNKNOWN


@contextlib.contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Translate data store exceptions raised inside the block into StoreError."""
    try:
        yield
    except gexc.GoogleAPIError as e:
        kind = classify(e)
        logger.error(f"Data store call failed ({action}, {kind.value}): {e}")
        raise StoreError(action, kind, detail=str(e)) from e


def decode(record_type: type[R], snapshot: Any) -> R:
    """Decode a document snapshot into ``record_type``."""
    data = snapshot.to_dict()
    if not isinstance(data, dict):
        raise SchemaError(f"Document {snapshot.id} has no data.")
    try:
        return record_type.from_dict(snapshot.id, data)
    except SchemaError as e:
        logger.error(f"Bad {record_type.__name__} document {snapshot.id}: {e.message}")
        raise


def decode_all(record_type: type[R], snapshots: Any) -> list[R]:
    """Decode every existing snapshot in ``snapshots``."""
    return [decode(record_type, snap) for snap in snapshots if snap.exists]


def where(field: str, op: str, value: Any) -> Any:
    """Build a field filter for a query."""
    return firestore.FieldFilter(field, op, value)
