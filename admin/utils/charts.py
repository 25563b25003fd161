"""
B-Go Admin — Chart Helpers
Plotly chart builders for the revenue and performance pages.
"""
import plotly.graph_objects as go
import pandas as pd


def channel_pie_chart(pie_data: list[dict]) -> go.Figure:
    """Donut of revenue per ticket channel (conductor / pre-booking / pre-ticketing)."""
    if not pie_data or not any(item["value"] for item in pie_data):
        return _empty_figure("No revenue recorded")

    fig = go.Figure()
    fig.add_trace(go.Pie(
        labels=[item["name"] for item in pie_data],
        values=[item["value"] for item in pie_data],
        marker=dict(colors=[item["color"] for item in pie_data]),
        hole=0.55,
        sort=False,
        hovertemplate="<b>%{label}</b><br>₱%{value:,.2f} (%{percent})<extra></extra>",
    ))
    fig.update_layout(_base_layout(height=280, showlegend=True))
    return fig


def route_revenue_chart(route_data: list[dict], limit: int = 10) -> go.Figure:
    """Horizontal bars for the top routes by revenue."""
    if not route_data:
        return _empty_figure("No routes yet")

    df = pd.DataFrame(route_data[:limit]).sort_values("revenue")

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=df["revenue"], y=df["route"],
        orientation="h",
        marker=dict(color="#007c91", cornerradius=4),
        customdata=df["passengers"],
        hovertemplate="<b>%{y}</b><br>₱%{x:,.2f}<br>%{customdata} passengers<extra></extra>",
    ))
    fig.update_layout(_base_layout(height=max(200, 36 * len(df))))
    fig.update_xaxes(tickprefix="₱", tickformat=",")
    return fig


def daily_trend_chart(daily_breakdown: list[dict]) -> go.Figure:
    """Line of daily revenue across a month."""
    if not daily_breakdown:
        return _empty_figure("No revenue this month")

    df = pd.DataFrame(daily_breakdown)
    df["date"] = pd.to_datetime(df["date"])
    df = df.sort_values("date")

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=df["date"], y=df["total_revenue"],
        mode="lines+markers",
        name="Revenue (₱)",
        line=dict(color="#10b981", width=2.5, shape="spline"),
        marker=dict(size=5, color="#10b981"),
        fill="tozeroy",
        fillcolor="rgba(16,185,129,0.12)",
        hovertemplate="<b>%{x|%d %b}</b><br>₱%{y:,.2f}<extra></extra>",
    ))
    fig.update_layout(_base_layout())
    fig.update_yaxes(tickprefix="₱", tickformat=",")
    return fig


def conductor_load_chart(chart_data: list[dict]) -> go.Figure:
    """Bars of current seat utilization per online conductor."""
    if not chart_data:
        return _empty_figure("No conductors online")

    df = pd.DataFrame(chart_data)

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=df["name"], y=df["utilization"],
        marker=dict(color="#6366f1", cornerradius=4),
        customdata=df["passengers"],
        hovertemplate="<b>%{x}</b><br>%{y:.1f}% full<br>%{customdata} on board<extra></extra>",
    ))
    fig.update_layout(_base_layout(height=260))
    fig.update_yaxes(ticksuffix="%", range=[0, 100])
    return fig


def _empty_figure(message: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(
        text=message,
        xref="paper", yref="paper", x=0.5, y=0.5,
        showarrow=False, font=dict(size=14, color="#94a3b8"),
    )
    fig.update_layout(_base_layout())
    return fig


def _base_layout(height: int = 220, showlegend: bool = False) -> dict:
    return dict(
        template="plotly_white",
        height=height,
        margin=dict(l=0, r=0, t=0, b=0),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(family="Inter, sans-serif", size=12, color="#475569"),
        xaxis=dict(showgrid=False),
        yaxis=dict(gridcolor="rgba(0,0,0,0.05)", gridwidth=1),
        hoverlabel=dict(bgcolor="#1e293b", font_color="#f1f5f9", font_size=13),
        showlegend=showlegend,
    )
