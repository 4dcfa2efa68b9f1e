# inventory_admin/models/utils.py
from typing import Any, Dict, Optional
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId

# fields of an admin document that never leave the service
PRIVATE_ADMIN_FIELDS = (
    "password_hash",
    "reset_token",
    "reset_token_expiry",
    "reset_attempts",
    "last_reset_request_at",
)


def str_to_objid(s: str) -> Optional[ObjectId]:
    """Parse an id coming from a URL or token; None when it is not an ObjectId."""
    if not isinstance(s, str):
        return None
    try:
        return ObjectId(s)
    except (InvalidId, TypeError):
        return None


def serialize_mongo_doc(doc: Dict) -> Dict:
    """
    Convert a MongoDB document to a JSON-serializable dict:
    - Convert ObjectId values to strings
    - Convert datetimes to ISO strings
    """
    out: Dict = {}
    for k, v in doc.items():
        if isinstance(v, ObjectId):
            out[k] = str(v)
        elif isinstance(v, datetime):
            out[k] = v.isoformat()
        elif isinstance(v, dict):
            out[k] = serialize_mongo_doc(v)
        elif isinstance(v, list):
            out[k] = [serialize_mongo_doc(i) if isinstance(i, dict) else (str(i) if isinstance(i, ObjectId) else i) for i in v]
        else:
            out[k] = v
    return out


def public_admin(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Admin document as exposed by the API: no credential or reset state, `id` instead of `_id`."""
    out = {k: v for k, v in doc.items() if k not in PRIVATE_ADMIN_FIELDS}
    out = serialize_mongo_doc(out)
    out["id"] = out.pop("_id", None)
    out.setdefault("role", "admin")
    return out
