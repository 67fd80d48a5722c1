"""Domain objects for link audits - explicit re-exports to satisfy linters."""
from .link import ExtractedLink as ExtractedLink, LinkKind as LinkKind, SourceLocation as SourceLocation
from .link_check import LinkCheckResult as LinkCheckResult, LinkStatus as LinkStatus
from .page_scan import PageScanResult as PageScanResult, PageStats as PageStats
from .scan_report import Error404 as Error404, ScanReport as ScanReport, ScanStats as ScanStats
from .scan_settings import ScanSettings as ScanSettings

__all__ = [
    "ExtractedLink",
    "LinkKind",
    "SourceLocation",
    "LinkCheckResult",
    "LinkStatus",
    "PageScanResult",
    "PageStats",
    "Error404",
    "ScanReport",
    "ScanStats",
    "ScanSettings",
]
