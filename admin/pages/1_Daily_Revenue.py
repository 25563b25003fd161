"""
B-Go Admin — Daily Revenue
Channel split, route breakdown and ticket list for one day.
"""
import streamlit as st
from utils.auth import require_auth
require_auth()

from datetime import date as date_cls

import pandas as pd

from bgo.services.export import build_daily_revenue_workbook, XLSX_MEDIA_TYPE
from bgo.services.revenue import (
    get_daily_report, get_available_routes,
    TICKET_TYPE_CONDUCTOR, TICKET_TYPE_PRE_BOOK, TICKET_TYPE_PRE_TICKET,
)
from utils.charts import channel_pie_chart, route_revenue_chart
from utils.components import metric_row, page_header, peso
from utils.timezone import fmt_datetime

TICKET_TYPE_LABELS = {
    "": "All tickets",
    TICKET_TYPE_CONDUCTOR: "Conductor",
    TICKET_TYPE_PRE_BOOK: "Pre-booking",
    TICKET_TYPE_PRE_TICKET: "Pre-ticketing",
}

page_header("📊", "Daily Revenue")

c1, c2, c3 = st.columns(3)
with c1:
    selected = st.date_input("Date", value=date_cls.today())
with c2:
    route = st.selectbox("Route", [""] + get_available_routes(), format_func=lambda r: r or "All routes")
with c3:
    ticket_type = st.selectbox("Ticket type", list(TICKET_TYPE_LABELS), format_func=TICKET_TYPE_LABELS.get)

report = get_daily_report(selected.isoformat(), route or None, ticket_type)

metric_row([
    ("💰", "Total revenue", peso(report["total_revenue"]), "#007c91"),
    ("🧍", "Passengers", f"{report['total_passengers']:,}", "#6366f1"),
    ("🎫", "Average fare", peso(report["average_fare"]), "#10b981"),
])
metric_row([
    ("🧑‍✈️", "Conductor", peso(report["conductor_revenue"]), "#8884d8"),
    ("📲", "Pre-booking", peso(report["pre_booking_revenue"]), "#d4a017"),
    ("🎟️", "Pre-ticketing", peso(report["pre_ticketing_revenue"]), "#82ca9d"),
])

left, right = st.columns(2)
with left:
    st.markdown("#### Revenue by channel")
    st.plotly_chart(channel_pie_chart(report["pie_chart"]), use_container_width=True)
with right:
    st.markdown("#### Top routes")
    st.plotly_chart(route_revenue_chart(report["route_revenue"]), use_container_width=True)

rows = []
for label, tickets in (
    ("Conductor", report["conductor_trips"]),
    ("Pre-booking", report["pre_booking_trips"]),
    ("Pre-ticketing", report["pre_ticketing"]),
):
    for t in tickets:
        rows.append({
            "Channel": label,
            "Conductor": t.get("conductor_id"),
            "Trip": t.get("trip_number"),
            "From": t.get("from"),
            "To": t.get("to"),
            "Passengers": t.get("passengers"),
            "Fare": t.get("fare"),
            "Time": fmt_datetime(t.get("timestamp")),
        })

st.markdown("#### Tickets")
if rows:
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
else:
    st.info("No tickets for the selected filters")

st.download_button(
    "⬇️ Export to Excel",
    data=build_daily_revenue_workbook(report).getvalue(),
    file_name=f"bgo_daily_revenue_{selected.isoformat()}.xlsx",
    mime=XLSX_MEDIA_TYPE,
)
