"""
B-Go Admin — Simple Password Authentication
Single shared dashboard password stored in an environment variable.
"""
import streamlit as st
import os


def require_auth():
    """Call at the top of every page to block unauthenticated sidebar navigation."""
    if not st.session_state.get("authenticated"):
        st.warning("🔒 Please sign in first")
        st.stop()


def check_password() -> bool:
    """Show login form and verify password. Returns True if authenticated."""
    if st.session_state.get("authenticated"):
        return True

    admin_password = os.getenv("ADMIN_PASSWORD", "")

    st.set_page_config(page_title="B-Go Admin — Sign in", page_icon="🔐", layout="centered")

    if not admin_password or admin_password == "admin":
        st.markdown("<h1 style='text-align:center;'>🔐 B-Go Admin</h1>", unsafe_allow_html=True)
        st.error(
            "⛔ ADMIN_PASSWORD is not set or still uses the default value.\n\n"
            "Set the `ADMIN_PASSWORD` environment variable to a strong password."
        )
        st.stop()
        return False

    st.markdown(
        "<h1 style='text-align:center;'>🔐 B-Go Admin</h1>"
        "<p style='text-align:center; color:#888;'>Enter the admin password to continue</p>",
        unsafe_allow_html=True,
    )

    with st.form("login_form"):
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", use_container_width=True)

    if submitted:
        if password == admin_password:
            st.session_state["authenticated"] = True
            st.rerun()
        else:
            st.error("❌ Wrong password")

    return False
