"""
B-Go Admin — Dashboard
Streamlit panel for revenue, remittance and conductor management.
"""
import os
import streamlit as st
from dotenv import load_dotenv

# Load .env before anything else
load_dotenv()

from utils.auth import check_password

# ── Authentication gate ──
if not check_password():
    st.stop()

st.set_page_config(
    page_title="B-Go Admin",
    page_icon="🚌",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ── Sidebar ──
with st.sidebar:
    st.markdown("### 🚌 B-Go Admin")
    env = os.getenv("ENVIRONMENT", "development")
    st.caption(f"Environment: {env}")
    st.divider()
    if st.button("🚪 Sign out", use_container_width=True):
        st.session_state["authenticated"] = False
        st.rerun()

# ── Main content ──
st.markdown("# 🚌 B-Go Admin")
st.markdown("##### Fleet revenue and conductor management. Pick a page on the left.")

_pages = [
    ("📊", "Daily Revenue", "Revenue per channel and route for a day"),
    ("📅", "Monthly Revenue", "Month totals, daily trend and growth"),
    ("💵", "Remittance", "Per-trip reconciliation for each conductor"),
    ("🧑‍✈️", "Conductors", "Accounts, status and trip history"),
    ("🏷️", "Discounts", "Senior, PWD and student discounts"),
    ("🏁", "Performance", "Trip totals, weekly trend and conductor load"),
]

cols = st.columns(3)
for i, (icon, title, desc) in enumerate(_pages):
    with cols[i % 3]:
        with st.container(border=True):
            st.markdown(f"### {icon} {title}")
            st.caption(desc)
