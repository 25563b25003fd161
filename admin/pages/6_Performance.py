"""
B-Go Admin — Performance
Fleet headline numbers, the weekly revenue trend and per-conductor performance.
"""
import streamlit as st
from utils.auth import require_auth
require_auth()

from datetime import date as date_cls

import pandas as pd

from bgo.services.dashboard import get_trip_summary, get_revenue_trend, get_conductors_summary
from bgo.services.performance import get_performance_report
from utils.charts import conductor_load_chart, daily_trend_chart
from utils.components import metric_row, page_header, peso
from utils.timezone import fmt_datetime

page_header("🏁", "Performance")

c1, c2 = st.columns(2)
with c1:
    all_dates = st.toggle("All dates", value=False)
with c2:
    selected = st.date_input("Date", value=date_cls.today(), disabled=all_dates)

day = None if all_dates else selected.isoformat()
trips = get_trip_summary("all") if all_dates else get_trip_summary("custom", day)
online = get_conductors_summary()

metric_row([
    ("🚌", "Trips", f"{trips['total_trips']:,}", "#007c91"),
    ("💰", "Fare collected", peso(trips["total_fare"]), "#10b981"),
    ("🧍", "Passengers / trip", f"{trips['avg_passengers']}", "#6366f1"),
])
metric_row([
    ("🟢", "Online conductors", f"{online['online_conductors']} / {online['total_conductors']}", "#22c55e"),
    ("📶", "Online rate", f"{online['online_percentage']}%", "#0ea5e9"),
    ("🛣️", "Busiest route", trips["most_common_route"], "#d4a017"),
])

st.markdown("#### Last 7 days")
trend = get_revenue_trend()
st.plotly_chart(
    daily_trend_chart([{"date": d["date"], "total_revenue": d["revenue"]} for d in trend]),
    use_container_width=True,
)

report = get_performance_report(day)
overall = report["overall_metrics"]

st.markdown("#### Conductors")
metric_row([
    ("💵", "Average revenue", peso(overall["average_revenue"]), "#8884d8"),
    ("🪑", "Fleet utilization", f"{overall['overall_utilization']:.1f}%", "#f97316"),
    ("👥", "On board now", f"{overall['total_current_passengers']} / {overall['total_capacity']}", "#64748b"),
])

st.plotly_chart(conductor_load_chart(report["chart_data"]), use_container_width=True)

if report["conductors"]:
    st.dataframe(pd.DataFrame([
        {
            "Conductor": c["conductor_name"],
            "Bus": c["bus_number"],
            "Online": "🟢" if c["is_online"] else "⚪",
            "Trips": c["total_trips"],
            "Tickets": c["total_tickets"],
            "Passengers": c["total_passengers"],
            "Revenue": c["total_revenue"],
            "Avg fare": round(c["average_fare"], 2),
            "Utilization %": round(c["utilization_rate"], 1),
            "Last seen": fmt_datetime(c["last_seen"]),
        }
        for c in report["conductors"]
    ]), use_container_width=True, hide_index=True)
else:
    st.info("No conductors found")
