import pytest


@pytest.fixture
def session():
    return {
        "id": 7,
        "topic": "hrp_navigation",
        "client": "ibx",
        "audience": "internal",
        "session_date": "2024-01-01",
        "end_date": "2024-01-03",
        "start_time": "09:00",
        "end_time": "12:30",
        "location": "Room 4",
        "notes": "Bring laptops",
        "status": "scheduled",
        "progress_tracking_enabled": True,
        "trainer_id": "t1",
    }


@pytest.fixture
def enrollments():
    return [
        {"id": 1, "session_id": 7, "learner_id": "u1", "learner_name": "Ada Lovelace",
         "learner_email": "ada@example.com", "learner_unique_id": "E1", "status": "enrolled",
         "created_at": "2023-12-20T15:04:00Z"},
        {"id": 2, "session_id": 7, "learner_id": "u2", "learner_name": None,
         "learner_email": "bob@example.com", "learner_unique_id": None, "status": "attended",
         "created_at": "2023-12-21T08:00:00Z"},
        {"id": 3, "session_id": 7, "learner_id": None, "learner_name": "Walk In",
         "learner_email": None, "learner_unique_id": "X9", "status": "no_show", "created_at": None},
    ]


@pytest.fixture
def attendance():
    return [
        {"session_id": 7, "learner_id": "u1", "attendance_date": "2024-01-01", "status": "present"},
        {"session_id": 7, "learner_id": "u1", "attendance_date": "2024-01-02", "status": "late"},
        {"session_id": 7, "learner_id": "u1", "attendance_date": "2024-01-03", "status": "absent"},
        {"session_id": 7, "learner_id": "u2", "attendance_date": "2024-01-01", "status": "present"},
    ]


@pytest.fixture
def progress():
    return [
        {"session_id": 7, "learner_id": "u1", "progress_date": "2024-01-01",
         "participation_score": 80, "accuracy_score": None, "productivity_score": 60, "notes": "Quiet start"},
        {"session_id": 7, "learner_id": "u1", "progress_date": "2024-01-02",
         "participation_score": 90, "accuracy_score": 70, "productivity_score": None, "notes": ""},
        {"session_id": 7, "learner_id": "u2", "progress_date": "2024-01-03",
         "participation_score": 50, "accuracy_score": 55, "productivity_score": 65, "notes": None},
    ]


@pytest.fixture
def snapshot(session, enrollments, attendance, progress):
    other = {
        "id": 8, "topic": "refresher", "client": "clover", "session_date": "2024-02-01",
        "status": "cancelled", "trainer_id": "t1",
    }
    third = {
        "id": 9, "topic": "learninglab", "client": "ibx", "session_date": "2024-02-10",
        "status": "scheduled", "trainer_id": "t2",
    }
    return {
        "training_sessions": [session, other, third],
        "session_enrollments": enrollments + [{"id": 4, "session_id": 9, "learner_id": "u3"}],
        "learner_attendance": attendance,
        "learner_progress": progress,
    }
