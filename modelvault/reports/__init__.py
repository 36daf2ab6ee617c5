"""Report generation package"""

from modelvault.reports.admin_report_generator import AdminReportGenerator
from modelvault.reports.report_aggregation import ReportAggregator

__all__ = [
    "AdminReportGenerator",
    "ReportAggregator",
]
