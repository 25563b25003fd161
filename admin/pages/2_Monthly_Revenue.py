"""
B-Go Admin — Monthly Revenue
"""
import streamlit as st
from utils.auth import require_auth
require_auth()

import pandas as pd

from bgo.services.export import build_monthly_revenue_workbook, XLSX_MEDIA_TYPE
from bgo.services.monthly import (
    load_monthly_data, get_available_months, format_growth_display, get_top_routes,
)
from bgo.services.revenue import get_available_routes
from utils.charts import daily_trend_chart, route_revenue_chart
from utils.components import metric_row, page_header, peso
from utils.timezone import today

page_header("📅", "Monthly Revenue", "Every day of the month aggregated, compared with the month before")

months = get_available_months() or [today()[:7]]
c1, c2 = st.columns(2)
with c1:
    month = st.selectbox("Month", months)
with c2:
    route = st.selectbox("Route", [""] + get_available_routes(), format_func=lambda r: r or "All routes")

with st.spinner("Aggregating month..."):
    data = load_monthly_data(month, route or None)

growth = data["monthly_growth"]
metric_row([
    ("💰", "Monthly revenue", peso(data["total_monthly_revenue"]), "#007c91",
     f"{format_growth_display(growth)} vs previous month"),
    ("🧍", "Passengers", f"{data['total_monthly_passengers']:,}", "#6366f1"),
    ("🎫", "Average fare", peso(data["average_monthly_fare"]), "#10b981"),
    ("📆", "Average per day", peso(data["average_daily_revenue"]), "#f59e0b"),
])

st.markdown("#### Daily trend")
st.plotly_chart(daily_trend_chart(data["daily_breakdown"]), use_container_width=True)

left, right = st.columns(2)
with left:
    st.markdown("#### Top routes")
    st.plotly_chart(route_revenue_chart(get_top_routes(data["route_monthly_data"])), use_container_width=True)
with right:
    st.markdown("#### Daily breakdown")
    if data["daily_breakdown"]:
        st.dataframe(pd.DataFrame(data["daily_breakdown"]), use_container_width=True, hide_index=True)
    else:
        st.info("No revenue this month")

st.download_button(
    "⬇️ Export to Excel",
    data=build_monthly_revenue_workbook(data).getvalue(),
    file_name=f"bgo_monthly_revenue_{month}.xlsx",
    mime=XLSX_MEDIA_TYPE,
)
