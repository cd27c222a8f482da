"""
Deal Aggregator

Merges running-shoe deal listings from independent retailer collectors into
one canonical, de-duplicated catalog, and derives store statistics, a daily
featured selection and a rolling history of collector outcomes.
"""

__version__ = "0.1.0"
__author__ = "Deal Aggregator Team"
