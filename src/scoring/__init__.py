# ABOUTME: Groups the deterministic session scoring pipeline.
# ABOUTME: Re-exports the single-session, domain and behavior entrypoints.

from .behavior import analyze_child, generate_behavior_report
from .domains import build_domain_profile, compute_domain_scores, domain_level
from .events import denoise_events
from .metrics import extract_metrics
from .report import compute_mini_report, format_mini_report, mini_reports_frame, score_sessions

__all__ = [
    "analyze_child",
    "generate_behavior_report",
    "build_domain_profile",
    "compute_domain_scores",
    "domain_level",
    "denoise_events",
    "extract_metrics",
    "compute_mini_report",
    "format_mini_report",
    "mini_reports_frame",
    "score_sessions",
]
