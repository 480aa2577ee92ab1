# joins.py
import logging
from typing import Any, Dict, List, Optional, Tuple

from constants import AUDIENCES, CLIENTS, TOPICS
from records import AccountLearner, display_name, learner_ref
from utils_time import date_key

logger = logging.getLogger(__name__)


def _learner_key(record: Dict[str, Any]) -> Optional[str]:
    lid = record.get("learner_id")
    if lid is None or str(lid).strip() == "":
        return None
    return str(lid)


def index_by_learner_and_date(records: List[Dict[str, Any]], date_field: str) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """learner_id -> "YYYY-MM-DD" -> record. A later duplicate replaces an earlier one."""
    out: Dict[str, Dict[str, Dict[str, Any]]] = {}
    skipped = 0
    for r in records:
        if not isinstance(r, dict):
            continue
        lid = _learner_key(r)
        key = date_key(r.get(date_field))
        if lid is None or key is None:
            skipped += 1
            continue
        out.setdefault(lid, {})[key] = r
    if skipped:
        logger.debug("Skipped %d records without learner id or %s", skipped, date_field)
    return out


def index_by_learner(records: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    out: Dict[str, List[Dict[str, Any]]] = {}
    for r in records:
        if not isinstance(r, dict):
            continue
        lid = _learner_key(r)
        if lid is None:
            continue
        out.setdefault(lid, []).append(r)
    return out


def learner_labels(enrollments: List[Dict[str, Any]]) -> Dict[str, str]:
    labels = {}
    for e in enrollments:
        ref = learner_ref(e)
        if isinstance(ref, AccountLearner):
            labels[ref.learner_id] = display_name(ref)
    return labels


def session_labels(session: Dict[str, Any]) -> Dict[str, str]:
    topic = session.get("topic")
    client = session.get("client")
    audience = session.get("audience")
    return {
        "topic": TOPICS.get(topic, topic) or "Training",
        "client": CLIENTS.get(client, client) or "Unknown",
        "audience": AUDIENCES.get(audience, audience) or "",
    }


# ---------- Snapshot indexes ----------
def build_indexes(data: Dict[str, Any]):
    sessions_by_id = {str(s["id"]): s for s in data.get("training_sessions", []) if isinstance(s, dict) and "id" in s}

    def _by_session(rows):
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for r in rows:
            if isinstance(r, dict) and r.get("session_id") is not None:
                grouped.setdefault(str(r["session_id"]), []).append(r)
        return grouped

    return {
        "sessions_by_id": sessions_by_id,
        "enrollments_by_session": _by_session(data.get("session_enrollments", [])),
        "attendance_by_session": _by_session(data.get("learner_attendance", [])),
        "progress_by_session": _by_session(data.get("learner_progress", [])),
    }


def session_bundle(data: Dict[str, Any], session_id: Any, idx: Optional[Dict[str, Any]] = None) -> Tuple[Dict[str, Any], List[Dict[str, Any]], List[Dict[str, Any]], List[Dict[str, Any]]]:
    idx = idx or build_indexes(data)
    sid = str(session_id)
    session = idx["sessions_by_id"].get(sid)
    if session is None:
        raise ValueError(f"Session {session_id} not found.")
    return (
        session,
        idx["enrollments_by_session"].get(sid, []),
        idx["attendance_by_session"].get(sid, []),
        idx["progress_by_session"].get(sid, []),
    )
