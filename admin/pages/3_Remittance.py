"""
B-Go Admin — Remittance
Per-conductor trip reconciliation for a date.
"""
import streamlit as st
from utils.auth import require_auth
require_auth()

import pandas as pd

from bgo.services.export import build_remittance_workbook, XLSX_MEDIA_TYPE
from bgo.services.remittance import (
    remittance_service, get_remittance_by_date, validate_remittance_data,
)
from utils.components import metric_row, page_header, peso
from utils.timezone import fmt_datetime

page_header("💵", "Remittance")

dates = remittance_service.get_available_dates()
if not dates:
    st.info("No trips recorded yet")
    st.stop()

c1, c2 = st.columns([3, 1])
with c1:
    date = st.selectbox("Date", dates)
with c2:
    st.write("")
    if st.button("🔄 Refresh", use_container_width=True):
        remittance_service.invalidate(date)

report = get_remittance_by_date(date)
summary = report["summary"]

metric_row([
    ("💰", "Revenue", peso(summary["total_revenue"]), "#007c91"),
    ("🧍", "Passengers", f"{summary['total_passengers']:,}", "#6366f1"),
    ("🎫", "Tickets", f"{summary['total_tickets']:,}", "#10b981"),
    ("🚌", "Trips", f"{summary['total_trips']:,}", "#f59e0b"),
])

validation = validate_remittance_data(report["remittance_data"])
for error in validation["errors"]:
    st.error(error)
if validation["warnings"]:
    with st.expander(f"⚠️ {len(validation['warnings'])} warnings"):
        for warning in validation["warnings"]:
            st.write(warning)

conductors = {}
for conductor_id, group in report["grouped_data"].items():
    details = remittance_service.get_conductor_details(conductor_id)
    conductors[conductor_id] = details
    s = group["conductor_summary"]
    with st.container(border=True):
        st.markdown(f"#### {details['name']} · Bus {details['bus_number']}")
        st.caption(f"{s['total_trips']} trips · {s['total_passengers']} passengers · {peso(s['total_revenue'])}")
        st.dataframe(pd.DataFrame([
            {
                "Trip": t["trip_number"],
                "Direction": t["trip_direction"],
                "Start": fmt_datetime(t["start_time"]),
                "End": fmt_datetime(t["end_time"]),
                "Tickets": t["ticket_count"],
                "Passengers": t["total_passengers"],
                "Revenue": t["total_revenue"],
                "Complete": "✅" if t["is_complete"] else "⏳",
            }
            for t in group["trips"]
        ]), use_container_width=True, hide_index=True)

st.download_button(
    "⬇️ Export to Excel",
    data=build_remittance_workbook(date, report["remittance_data"], summary, conductors).getvalue(),
    file_name=f"bgo_remittance_{date}.xlsx",
    mime=XLSX_MEDIA_TYPE,
)
