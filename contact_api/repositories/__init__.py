"""
Persistence adapters.

Services depend on SQLRepository rather than opening sessions themselves.
"""
