"""
Microsoft To Do fetcher.

Polls the Graph To Do API for one or more accounts and republishes
normalized task records to a downstream consumer.
"""

__version__ = "0.1.0"
