"""
B-Go Admin — Discounts
"""
import streamlit as st
from utils.auth import require_auth
require_auth()

from datetime import date as date_cls, timedelta

import pandas as pd

from bgo.services.discounts import fetch_discount_report, calculate_discount_stats
from bgo.services.export import build_discount_workbook, XLSX_MEDIA_TYPE
from utils.components import metric_row, page_header, peso

page_header("🏷️", "Discounts", "Senior, PWD and student fares")

c1, c2 = st.columns(2)
with c1:
    start = st.date_input("From", value=date_cls.today() - timedelta(days=6))
with c2:
    end = st.date_input("To", value=date_cls.today())

if start > end:
    st.error("The start date must not be after the end date")
    st.stop()

report = fetch_discount_report(start.isoformat(), end.isoformat())
stats = calculate_discount_stats(report["trips"])

metric_row([
    ("🏷️", "Total discount", peso(stats["total_discount"]), "#ef4444"),
    ("👴", "Senior", peso(stats["senior_discount"]), "#6366f1"),
    ("♿", "PWD", peso(stats["pwd_discount"]), "#007c91"),
    ("🎓", "Student", peso(stats["student_discount"]), "#10b981"),
])

st.markdown("#### Discounted tickets")
if report["tickets"]:
    st.dataframe(pd.DataFrame([
        {
            "Date/Time": t["date_time"].strftime("%Y-%m-%d %H:%M"),
            "Ticket": t["id"],
            "Route": t["route"],
            "Bus": t["bus_number"],
            "Types": t["type_string"],
            "Gross": t["gross"],
            "Discount": t["discount"],
            "Paid": t["paid"],
            "Category": t["ticket_category"],
        }
        for t in report["tickets"]
    ]), use_container_width=True, hide_index=True)
else:
    st.info("No discounted tickets in this range")

st.download_button(
    "⬇️ Export to Excel",
    data=build_discount_workbook(report, stats).getvalue(),
    file_name=f"bgo_discounts_{start.isoformat()}_{end.isoformat()}.xlsx",
    mime=XLSX_MEDIA_TYPE,
)
