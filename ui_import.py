# ui_import.py
import json
import logging

import pandas as pd
import streamlit as st

from constants import XLSX_MIME_TYPE
from errors import TrackerError
from loaders import parse_import_file
from report_builder import IMPORT_TEMPLATE_FILE_NAME, build_import_template, serialize

logger = logging.getLogger(__name__)


def render_import_panel(session_id):
    st.subheader("📥 Bulk learner import")
    st.caption("Upload an .xlsx or .csv with Name, Email and/or ID columns. Only the first sheet is read.")

    st.download_button(
        "Download import template (.xlsx)",
        serialize(build_import_template()),
        file_name=IMPORT_TEMPLATE_FILE_NAME,
        mime=XLSX_MIME_TYPE,
        key=f"import_template_{session_id}",
    )

    uploaded = st.file_uploader("Learner file", type=["xlsx", "csv"], key=f"import_file_{session_id}")
    if uploaded is None:
        return

    try:
        learners = parse_import_file(uploaded.getvalue(), uploaded.name)
    except TrackerError as e:
        logger.warning("Import of %s rejected: %s", uploaded.name, e)
        st.error(str(e))
        return

    if not learners:
        st.info("No learners found in that file.")
        return

    payload = [row.to_enrollment(session_id) for row in learners]
    df = pd.DataFrame(payload, columns=["learner_name", "learner_email", "learner_unique_id", "status"])
    st.success(f"{len(learners)} learners ready to enroll.")
    st.dataframe(df, use_container_width=True, hide_index=True)
    st.download_button(
        "Download enrollment rows (.json)",
        json.dumps(payload, indent=2).encode("utf-8"),
        file_name=f"session_{session_id}_enrollments.json",
        mime="application/json",
        key=f"import_payload_{session_id}",
    )
