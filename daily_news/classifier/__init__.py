"""
Category Classifier

Keyword-based title classification into one of the fixed categories.

Re-exports:
    - CategoryClassifier: classifier over an immutable keyword table
    - CATEGORY_KEYWORDS: the default table
    - classify: classify a title with the default table

Usage:
    from daily_news.classifier import classify

    category = classify("Parliament passes new budget")
"""
from .classifier import CATEGORY_KEYWORDS, CategoryClassifier, classify

__all__ = [
    "CATEGORY_KEYWORDS",
    "CategoryClassifier",
    "classify",
]
