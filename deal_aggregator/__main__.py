"""Allow ``python -m deal_aggregator``."""

from .main import main

main()
