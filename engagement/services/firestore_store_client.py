"""
Firestore store client: one collection per table.

Used when STORE_BACKEND=firestore. Rows are documents; the row id is the document
id. Tables listed in UNIQUE_KEYS get a deterministic document id built from the
key fields and are written with create(), so a second insert of the same key fails
with AlreadyExists and surfaces as DuplicateKey.

Google API errors are translated into the engagement error taxonomy.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from google.api_core import exceptions as gexc
from google.cloud.firestore import AsyncClient, Query
from google.cloud.firestore_v1.base_query import FieldFilter
from google.oauth2 import service_account

from ..errors import DuplicateKey, NetworkError, PermissionDenied, RelationMissing, StoreError
from .firebase_app import project_id_from_credentials_file
from .store_client import (
    UNIQUE_KEYS,
    Filters,
    OrderBy,
    Row,
    is_in_filter,
    row_matches,
    sort_rows,
)

logger = logging.getLogger(__name__)

# Firestore limits
IN_FILTER_LIMIT = 30
BATCH_LIMIT = 500


def translate_error(exc: Exception, table: Optional[str] = None) -> StoreError:
    """Map a google.api_core exception onto the engagement error taxonomy."""
    msg = str(exc)
    if isinstance(exc, (gexc.AlreadyExists, gexc.Conflict)):
        return DuplicateKey(msg, table=table)
    if isinstance(exc, (gexc.PermissionDenied, gexc.Forbidden, gexc.Unauthenticated, gexc.Unauthorized)):
        return PermissionDenied(msg, table=table)
    # Missing database, or a composite index that was never created
    if isinstance(exc, (gexc.NotFound, gexc.FailedPrecondition)):
        return RelationMissing(msg, table=table)
    return NetworkError(msg, table=table)


def unique_doc_id(table: str, row: Row) -> Optional[str]:
    """Deterministic document id for tables with a store-level unique key."""
    key = UNIQUE_KEYS.get(table)
    if not key:
        return None
    return "__".join(str(row.get(k, "")) for k in key)


def _chunks(values: List[Any], size: int) -> List[List[Any]]:
    return [values[i:i + size] for i in range(0, len(values), size)]


class FirestoreStoreClient:
    """
    Store client backed by Cloud Firestore via google.cloud.firestore.AsyncClient.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_path: Optional[Union[Path, str]] = None,
        *,
        client: Optional[AsyncClient] = None,
    ):
        if client is not None:
            self._db = client
            return
        if not credentials_path:
            raise ValueError("FirestoreStoreClient requires credentials_path")
        cred_path = str(Path(credentials_path).resolve())
        creds = service_account.Credentials.from_service_account_file(cred_path)
        proj = project_id or project_id_from_credentials_file(cred_path)
        self._db = AsyncClient(project=proj, credentials=creds)
        logger.info("[store] Firestore async client initialized (project=%s)", proj or "inferred")

    def _doc_to_row(self, doc: Any) -> Row:
        d = doc.to_dict() or {}
        d["id"] = doc.id
        return d

    async def _matching_docs(
        self,
        table: str,
        filters: Optional[Filters],
        order_by: Optional[OrderBy] = None,
    ) -> List[Any]:
        """Fetch document snapshots matching filters (id filters resolved by document lookup)."""
        coll = self._db.collection(table)
        filters = dict(filters or {})

        if "id" in filters:
            wanted = filters.pop("id")
            ids = list(wanted) if is_in_filter(wanted) else [wanted]
            docs = []
            for doc_id in ids:
                doc = await coll.document(str(doc_id)).get()
                if doc.exists and row_matches(self._doc_to_row(doc), filters):
                    docs.append(doc)
            return docs

        eq = {k: v for k, v in filters.items() if not is_in_filter(v)}
        members = {k: list(v) for k, v in filters.items() if is_in_filter(v)}

        query = coll
        for k, v in eq.items():
            query = query.where(filter=FieldFilter(k, "==", v))

        if not members:
            if order_by:
                field_name, descending = order_by
                query = query.order_by(
                    field_name,
                    direction=Query.DESCENDING if descending else Query.ASCENDING,
                )
            return [doc async for doc in query.stream()]

        # One "in" filter goes to the server in chunks; the rest are checked locally
        in_field, in_values = next(iter(members.items()))
        rest = {k: v for k, v in members.items() if k != in_field}
        if not in_values:
            return []
        docs = []
        for chunk in _chunks(in_values, IN_FILTER_LIMIT):
            q = query.where(filter=FieldFilter(in_field, "in", chunk))
            async for doc in q.stream():
                if row_matches(self._doc_to_row(doc), rest):
                    docs.append(doc)
        if order_by:
            by_id = {d.id: d for d in docs}
            ordered = sort_rows([self._doc_to_row(d) for d in docs], order_by)
            docs = [by_id[r["id"]] for r in ordered]
        return docs

    async def insert(self, table: str, row: Row) -> Row:
        data = {k: v for k, v in row.items() if k != "id"}
        coll = self._db.collection(table)
        doc_id = unique_doc_id(table, row) or row.get("id")
        ref = coll.document(str(doc_id)) if doc_id else coll.document()
        try:
            await ref.create(data)
        except (gexc.GoogleAPICallError, gexc.RetryError) as e:
            raise translate_error(e, table) from e
        out = dict(data)
        out["id"] = ref.id
        return out

    async def delete(self, table: str, filters: Filters) -> int:
        try:
            docs = await self._matching_docs(table, filters)
            for chunk in _chunks(docs, BATCH_LIMIT):
                batch = self._db.batch()
                for doc in chunk:
                    batch.delete(doc.reference)
                await batch.commit()
        except (gexc.GoogleAPICallError, gexc.RetryError) as e:
            raise translate_error(e, table) from e
        return len(docs)

    async def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order_by: Optional[OrderBy] = None,
    ) -> List[Row]:
        try:
            docs = await self._matching_docs(table, filters, order_by)
        except (gexc.GoogleAPICallError, gexc.RetryError) as e:
            raise translate_error(e, table) from e
        return [self._doc_to_row(d) for d in docs]

    async def update(self, table: str, filters: Filters, values: Row) -> int:
        data = {k: v for k, v in values.items() if k != "id"}
        try:
            docs = await self._matching_docs(table, filters)
            for chunk in _chunks(docs, BATCH_LIMIT):
                batch = self._db.batch()
                for doc in chunk:
                    batch.update(doc.reference, data)
                await batch.commit()
        except (gexc.GoogleAPICallError, gexc.RetryError) as e:
            raise translate_error(e, table) from e
        return len(docs)
