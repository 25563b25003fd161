"""
B-Go Admin — Excel Export
openpyxl workbooks for the revenue, remittance and discount reports.
"""
from datetime import datetime
from io import BytesIO

import openpyxl
from openpyxl.styles import Font, Alignment, PatternFill

from bgo.config import settings

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADER_FILL = PatternFill(start_color="007C91", end_color="007C91", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)


def _cell_value(value):
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(settings.local_tz).replace(tzinfo=None)
        return value.strftime("%Y-%m-%d %H:%M")
    return value


def _write_table(ws, headers: list[str], rows: list[list], start_row: int = 1) -> int:
    """Styled header plus rows; returns the next free row."""
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=start_row, column=col, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal="center")

    for row_idx, row in enumerate(rows, start_row + 1):
        for col, value in enumerate(row, 1):
            ws.cell(row=row_idx, column=col, value=_cell_value(value))
    return start_row + len(rows) + 1


def _write_summary(ws, row: int, values: dict):
    """Bold label/value pairs, one per row."""
    for offset, (label, value) in enumerate(values.items()):
        ws.cell(row=row + offset, column=1, value=label).font = Font(bold=True)
        ws.cell(row=row + offset, column=2, value=value).font = Font(bold=True)


def _auto_width(ws):
    for col in ws.columns:
        max_len = max(len(str(cell.value or "")) for cell in col)
        ws.column_dimensions[col[0].column_letter].width = max(max_len + 2, 12)


def _save(wb) -> BytesIO:
    for ws in wb.worksheets:
        _auto_width(ws)
    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf


def _ticket_rows(tickets: list, channel: str) -> list[list]:
    return [
        [
            channel,
            t.get("conductor_id", ""),
            t.get("trip_number", ""),
            t.get("trip_direction", ""),
            t.get("from", ""),
            t.get("to", ""),
            t.get("passengers", 0),
            t.get("fare", 0),
            t.get("ticket_type", ""),
            t.get("timestamp"),
        ]
        for t in tickets
    ]


TICKET_HEADERS = [
    "Channel", "Conductor", "Trip", "Direction", "From", "To",
    "Passengers", "Fare (PHP)", "Type", "Time",
]


def build_daily_revenue_workbook(report: dict) -> BytesIO:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Daily Revenue"

    rows = (
        _ticket_rows(report["conductor_trips"], "Conductor")
        + _ticket_rows(report["pre_booking_trips"], "Pre-booking")
        + _ticket_rows(report["pre_ticketing"], "Pre-ticketing")
    )
    next_row = _write_table(ws, TICKET_HEADERS, rows)
    _write_summary(ws, next_row + 1, {
        "Date": report.get("date") or "All dates",
        "Route": report.get("route") or "All routes",
        "Total Revenue": report["total_revenue"],
        "Total Passengers": report["total_passengers"],
        "Average Fare": round(report["average_fare"], 2),
        "Conductor Revenue": report["conductor_revenue"],
        "Pre-booking Revenue": report["pre_booking_revenue"],
        "Pre-ticketing Revenue": report["pre_ticketing_revenue"],
    })

    routes = wb.create_sheet("Routes")
    _write_table(routes, ["Route", "Revenue (PHP)", "Passengers"], [
        [r["route"], r["revenue"], r["passengers"]] for r in report.get("route_revenue") or []
    ])
    return _save(wb)


def build_monthly_revenue_workbook(report: dict) -> BytesIO:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Monthly Revenue"

    headers = [
        "Date", "Revenue (PHP)", "Passengers", "Conductor", "Pre-booking",
        "Pre-ticketing", "Average Fare",
    ]
    rows = [
        [
            day["date"], day["total_revenue"], day["total_passengers"],
            day["conductor_revenue"], day["pre_booking_revenue"],
            day["pre_ticketing_revenue"], round(day["average_fare"], 2),
        ]
        for day in report["daily_breakdown"]
    ]
    next_row = _write_table(ws, headers, rows)
    _write_summary(ws, next_row + 1, {
        "Month": report.get("month"),
        "Total Revenue": report["total_monthly_revenue"],
        "Total Passengers": report["total_monthly_passengers"],
        "Average Fare": round(report["average_monthly_fare"], 2),
        "Average Daily Revenue": round(report["average_daily_revenue"], 2),
        "Growth (%)": round(report["monthly_growth"], 1),
    })

    routes = wb.create_sheet("Routes")
    _write_table(routes, ["Route", "Direction", "Revenue (PHP)", "Passengers"], [
        [r["route"], r["trip_direction"], r["revenue"], r["passengers"]]
        for r in report["route_monthly_data"]
    ])
    return _save(wb)


def build_remittance_workbook(date: str, entries: list, summary: dict, conductors: dict | None = None) -> BytesIO:
    conductors = conductors or {}
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Remittance"

    headers = [
        "Conductor", "Bus", "Trip", "Direction", "Start", "End",
        "Tickets", "Passengers", "Revenue (PHP)", "Complete",
    ]
    rows = [
        [
            e["conductor_id"],
            (conductors.get(e["conductor_id"]) or {}).get("bus_number", "N/A"),
            e["trip_number"],
            e["trip_direction"],
            e.get("start_time"),
            e.get("end_time"),
            e["ticket_count"],
            e["total_passengers"],
            e["total_revenue"],
            "Yes" if e.get("is_complete") else "No",
        ]
        for e in entries
    ]
    next_row = _write_table(ws, headers, rows)
    _write_summary(ws, next_row + 1, {
        "Date": date,
        "Total Revenue": summary["total_revenue"],
        "Total Passengers": summary["total_passengers"],
        "Total Tickets": summary["total_tickets"],
        "Total Trips": summary["total_trips"],
        "Average Fare": round(summary["average_fare"], 2),
    })
    return _save(wb)


def build_discount_workbook(report: dict, stats: dict) -> BytesIO:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Discounted Trips"

    headers = [
        "Date", "Trip", "Route", "Direction", "Bus", "Senior", "PWD", "Student",
        "Discounted Pax", "Total Discount", "Paid (PHP)",
    ]
    rows = [
        [
            t["date"], t["trip_id"], t["route"], t["direction"], t["bus_number"],
            t["breakdown"]["senior"], t["breakdown"]["pwd"], t["breakdown"]["student"],
            t["total_discounted_pax"], t["total_discount"], t["total_revenue"],
        ]
        for t in report["trips"]
    ]
    next_row = _write_table(ws, headers, rows)
    _write_summary(ws, next_row + 1, {
        "Trips": stats["trip_count"],
        "Total Discount": round(stats["total_discount"], 2),
        "Total Paid": round(stats["total_paid"], 2),
        "Senior Discount": round(stats["senior_discount"], 2),
        "PWD Discount": round(stats["pwd_discount"], 2),
        "Student Discount": round(stats["student_discount"], 2),
    })

    tickets = wb.create_sheet("Tickets")
    _write_table(tickets, [
        "Date/Time", "Ticket", "Trip", "Route", "Bus", "Conductor", "Types",
        "Gross", "Discount", "Paid", "Category",
    ], [
        [
            t["date_time"], t["id"], t["trip_id"], t["route"], t["bus_number"],
            t["conductor"], t["type_string"], t["gross"], t["discount"], t["paid"],
            t["ticket_category"],
        ]
        for t in report["tickets"]
    ])
    return _save(wb)
