"""
B-Go Admin — Reusable HTML Components
"""
import streamlit as st


def peso(value: float) -> str:
    return f"₱{value:,.2f}"


def metric_card(icon: str, label: str, value: str, color: str, sub: str = "") -> str:
    """Metric card: small uppercase label, large coloured value, optional caption."""
    return f"""
    <div style="
        background: #ffffff;
        border: 1px solid #e2e8f0;
        border-radius: 14px;
        padding: 20px 18px;
        margin-bottom: 12px;
    ">
        <div style="
            font-size: 0.78rem; color: #64748b;
            text-transform: uppercase; letter-spacing: 0.06em;
            margin-bottom: 8px; font-weight: 600;
        ">{icon} {label}</div>
        <div style="font-size: 1.8rem; font-weight: 800; color: {color}; line-height: 1.1;">{value}</div>
        <div style="font-size: 0.75rem; color: #64748b; margin-top: 4px;">{sub}</div>
    </div>
    """


def metric_row(cards: list[tuple]):
    """Render (icon, label, value, color[, sub]) tuples side by side."""
    cols = st.columns(len(cards))
    for col, card in zip(cols, cards):
        with col:
            st.markdown(metric_card(*card), unsafe_allow_html=True)


def page_header(icon: str, title: str, subtitle: str = ""):
    st.markdown(f"# {icon} {title}")
    if subtitle:
        st.caption(subtitle)
