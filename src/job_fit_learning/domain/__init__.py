"""Domain modules for the fit-score learning loop."""

from .filters import FilterResult, JobFilter, ProhibitedKeyword
from .fit_score import compute_fit_score
from .jobs import JobPosting
from .profiles import Category, Profile, ProfileCatalog
from .rejections import RejectionAnalysis, RejectionPattern, WeightAdjustmentSuggestion
from .weights import WeightAdjustment, WeightValidation

__all__ = [
    "Category",
    "FilterResult",
    "JobFilter",
    "JobPosting",
    "Profile",
    "ProfileCatalog",
    "ProhibitedKeyword",
    "RejectionAnalysis",
    "RejectionPattern",
    "WeightAdjustment",
    "WeightAdjustmentSuggestion",
    "WeightValidation",
    "compute_fit_score",
]
