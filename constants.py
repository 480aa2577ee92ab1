# constants.py

# Default snapshot if nothing is uploaded in the sidebar.
PRIMARY_JSON_PATH = "seed.json"
SECONDARY_JSON_PATH = ""

# Label catalogues; unknown codes fall back to the raw code.
TOPICS = {
    "hrp_navigation": "HRP Navigation",
    "hr_answers_standard": "HR Answers Standard",
    "hr_answers_adhoc": "HR Answers Adhoc",
    "dlp_role_specific": "DLP-Role Specific",
    "learninglab": "LearningLab",
    "refresher": "Refresher",
}

CLIENTS = {
    "ibx": "IBX",
    "hwc": "HWC",
    "az_blue": "AZ Blue",
    "clover": "Clover",
}

AUDIENCES = {
    "internal": "Internal",
    "external": "External",
}

ENROLLMENT_STATUSES = ["enrolled", "attended", "no_show", "cancelled"]
ATTENDANCE_STATUSES = ["present", "absent", "late"]

# Progress metrics: (record key, short name, display label)
METRICS = [
    ("participation_score", "participation", "Participation"),
    ("accuracy_score", "accuracy", "Accuracy"),
    ("productivity_score", "productivity", "Productivity"),
]

# Export placeholders
NOT_AVAILABLE = "N/A"
NO_RECORD = "-"

DEFAULT_TIME = "09:00"

# 0 = Sunday ... 6 = Saturday
WEEK_STARTS_ON = 0

# Sheet names
ROSTER_SHEET = "Roster"
ATTENDANCE_SHEET = "Attendance"
DAILY_SCORES_SHEET = "Daily Scores"
WEEKLY_AVERAGES_SHEET = "Weekly Averages"
IMPORT_TEMPLATE_SHEET = "Learners"

ROSTER_COLUMN_WIDTHS = [5, 25, 30, 15, 12, 20]
IMPORT_TEMPLATE_COLUMN_WIDTHS = [25, 30, 15]

XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CALENDAR_MIME_TYPE = "text/calendar"

# Calendar export
ICS_PRODID = "-//HRP Learning Hub//Training Calendar//EN"
ICS_UID_DOMAIN = "hrplearninghub"
GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"
OUTLOOK_CALENDAR_URL = "https://outlook.live.com/calendar/0/deeplink/compose"
