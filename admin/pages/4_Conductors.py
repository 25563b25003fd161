"""
B-Go Admin — Conductors
List, create and update conductor accounts.
"""
import streamlit as st
from utils.auth import require_auth
require_auth()

import pandas as pd

from bgo.services.conductors import conductor_service, ConductorError
from utils.components import page_header
from utils.timezone import fmt_datetime

ADMIN_ACTOR = {"user_id": "streamlit-admin", "name": "Dashboard Admin", "role": "admin"}

page_header("🧑‍✈️", "Conductors")

search = st.text_input("Search", placeholder="Name, route, bus number or email")
conductors = conductor_service.search_conductors(search)

if conductors:
    st.dataframe(pd.DataFrame([
        {
            "ID": c["id"],
            "Name": c.get("name"),
            "Bus": c.get("busNumber"),
            "Route": c.get("route"),
            "Plate": c.get("plateNumber"),
            "Coding day": c.get("codingDay"),
            "Online": "🟢" if c.get("isOnline") else "⚪",
            "Trips": c.get("totalTrips", 0),
            "Today": c.get("todayTrips", 0),
            "Last seen": fmt_datetime(c.get("lastSeen")),
        }
        for c in conductors
    ]), use_container_width=True, hide_index=True)
else:
    st.info("No conductors found")

tab_create, tab_edit, tab_maint = st.tabs(["➕ New conductor", "✏️ Edit", "🛠️ Maintenance"])

with tab_create:
    with st.form("create_conductor"):
        name = st.text_input("Name")
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        bus_number = st.number_input("Bus number", min_value=1, step=1)
        route = st.text_input("Route")
        plate = st.text_input("Plate number")
        submitted = st.form_submit_button("Create", use_container_width=True)
    if submitted:
        try:
            result = conductor_service.create_conductor({
                "name": name, "email": email, "password": password,
                "busNumber": int(bus_number), "route": route, "plateNumber": plate,
            }, ADMIN_ACTOR)
            verb = "reactivated" if result.get("reactivated") else "created"
            st.success(f"✅ Conductor {result['id']} {verb}")
        except ConductorError as e:
            st.error(f"❌ {e}")

with tab_edit:
    ids = [c["id"] for c in conductors]
    if ids:
        conductor_id = st.selectbox("Conductor", ids)
        current = next(c for c in conductors if c["id"] == conductor_id)
        with st.form("edit_conductor"):
            new_route = st.text_input("Route", value=current.get("route") or "")
            new_plate = st.text_input("Plate number", value=current.get("plateNumber") or "")
            online = st.toggle("Online", value=bool(current.get("isOnline")))
            save = st.form_submit_button("Save", use_container_width=True)
        if save:
            try:
                conductor_service.update_conductor(
                    conductor_id, {"route": new_route, "plateNumber": new_plate}, ADMIN_ACTOR
                )
                if online != bool(current.get("isOnline")):
                    conductor_service.update_conductor_status(conductor_id, online, ADMIN_ACTOR)
                st.success("✅ Saved")
            except ConductorError as e:
                st.error(f"❌ {e}")

        st.caption("🔒 Deleting a conductor requires a superadmin account and is done through the API.")

with tab_maint:
    c1, c2 = st.columns(2)
    with c1:
        if st.button("🔁 Sync trip counts", use_container_width=True):
            result = conductor_service.sync_all_trip_counts(ADMIN_ACTOR)
            st.success(f"Updated {result['updated_count']} conductors")
    with c2:
        if st.button("📆 Sync coding days", use_container_width=True):
            result = conductor_service.sync_all_coding_days(ADMIN_ACTOR)
            st.success(f"Updated {result['updated_count']} conductors")
