"""Reporting utilities for backend-generated documents."""

from backend.reporting.dashboard_report import (
    BreakdownRow,
    DashboardReportData,
    MonthlyRow,
    generate_dashboard_report_pdf,
)

__all__ = ["BreakdownRow", "DashboardReportData", "MonthlyRow", "generate_dashboard_report_pdf"]
