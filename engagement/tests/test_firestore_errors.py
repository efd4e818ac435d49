#!/usr/bin/env python3
"""
Firestore Store Client Tests (no network)

Google API exceptions map onto the engagement error taxonomy, and tables with a
store-level unique key get deterministic document ids.

Run:
----
    pytest engagement/tests/test_firestore_errors.py -v
"""

import pytest
from google.api_core import exceptions as gexc

from engagement.errors import DuplicateKey, NetworkError, PermissionDenied, RelationMissing
from engagement.services.firestore_store_client import translate_error, unique_doc_id
from engagement.services.store_client import BOOKMARKS, COMMENT_LIKES, COMMENTS, LIKES, REACTIONS


@pytest.mark.parametrize(
    "exc, expected",
    [
        (gexc.AlreadyExists("doc exists"), DuplicateKey),
        (gexc.Conflict("aborted"), DuplicateKey),
        (gexc.PermissionDenied("rules"), PermissionDenied),
        (gexc.Unauthenticated("no token"), PermissionDenied),
        (gexc.NotFound("database"), RelationMissing),
        (gexc.FailedPrecondition("index required"), RelationMissing),
        (gexc.ServiceUnavailable("unavailable"), NetworkError),
        (gexc.DeadlineExceeded("deadline"), NetworkError),
        (ConnectionError("reset"), NetworkError),
    ],
)
def test_translate_error(exc, expected):
    err = translate_error(exc, table=LIKES)
    assert type(err) is expected
    assert err.table == LIKES


def test_unique_doc_ids():
    assert unique_doc_id(LIKES, {"content_item_id": "p1", "user_id": "u1"}) == "p1__u1"
    assert unique_doc_id(BOOKMARKS, {"content_item_id": "p1", "user_id": "u1"}) == "p1__u1"
    assert unique_doc_id(COMMENT_LIKES, {"comment_id": "c1", "user_id": "u1"}) == "c1__u1"


def test_no_unique_doc_id_for_reactions_or_comments():
    assert unique_doc_id(REACTIONS, {"content_item_id": "p1", "user_id": "u1"}) is None
    assert unique_doc_id(COMMENTS, {"content_item_id": "p1", "user_id": "u1"}) is None
