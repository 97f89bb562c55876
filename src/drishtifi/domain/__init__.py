from .models import CONFIDENCE_LEVELS, FinancialEstimate, GeneratedReport, Report

__all__ = ["CONFIDENCE_LEVELS", "FinancialEstimate", "GeneratedReport", "Report"]
