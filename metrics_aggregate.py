# metrics_aggregate.py
from typing import Any, Dict, List, Optional
from statistics import mean
from collections import Counter

from constants import CLIENTS, ENROLLMENT_STATUSES, METRICS
from joins import build_indexes, index_by_learner_and_date, learner_labels, session_bundle, session_labels
from metrics_period import attendance_rate, attendance_row, attendance_tally, score_value
from records import AccountLearner, learner_ref
from utils_time import date_range_label, session_days


def aggregate_session(data: Dict[str, Any], session_id: Any) -> Dict[str, Any]:
    session, enrollments, attendance, progress = session_bundle(data, session_id)
    labels = session_labels(session)
    days = session_days(session)

    refs = [learner_ref(e) for e in enrollments]
    with_account = sum(1 for r in refs if isinstance(r, AccountLearner))
    status_counts = Counter((e.get("status") or "enrolled") for e in enrollments)

    att_idx = index_by_learner_and_date(attendance, "attendance_date")
    totals = {"present": 0, "absent": 0, "late": 0}
    for dates in att_idx.values():
        tally = attendance_tally(attendance_row(dates, days))
        for k, v in tally.items():
            totals[k] += v

    prog_idx = index_by_learner_and_date(progress, "progress_date")
    metric_avgs: Dict[str, Optional[float]] = {}
    for key, name, _ in METRICS:
        vals = [score_value(r.get(key)) for dates in prog_idx.values() for r in dates.values()]
        vals = [v for v in vals if v is not None]
        metric_avgs[name] = round(mean(vals), 1) if vals else None

    return {
        "session_id": session.get("id"),
        "topic": labels["topic"],
        "client": labels["client"],
        "audience": labels["audience"],
        "status": session.get("status") or "scheduled",
        "date_range": date_range_label(session),
        "days": len(days),
        "progress_tracking": bool(session.get("progress_tracking_enabled")),
        "enrolled_total": len(enrollments),
        "with_account": with_account,
        "external": len(enrollments) - with_account,
        "enrollment_status": {s: int(status_counts.get(s, 0)) for s in ENROLLMENT_STATUSES},
        "attendance": totals,
        "attendance_rate": attendance_rate(totals),
        "learners_tracked": len(set(att_idx) | set(prog_idx)),
        "labels": learner_labels(enrollments),
        "avg_scores": metric_avgs,
    }


def trainer_overview(data: Dict[str, Any], trainer_id: Any = None) -> Dict[str, Any]:
    """Headline counts for one trainer, or for everyone when trainer_id is None."""
    idx = build_indexes(data)
    sessions: List[Dict[str, Any]] = [
        s for s in idx["sessions_by_id"].values()
        if s.get("status") != "cancelled"
        and (trainer_id is None or str(s.get("trainer_id")) == str(trainer_id))
    ]
    total_enrollments = sum(len(idx["enrollments_by_session"].get(str(s["id"]), [])) for s in sessions)

    client_counts = Counter(s.get("client") or "unknown" for s in sessions)
    by_client = [
        {"name": CLIENTS.get(client, client), "value": count}
        for client, count in client_counts.most_common()
    ]
    return {
        "total_sessions": len(sessions),
        "total_enrollments": total_enrollments,
        "sessions_by_client": by_client,
    }
