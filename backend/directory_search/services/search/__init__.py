# backend/directory_search/services/search/__init__.py
"""
Keyword search services.

Query interpretation, location resolution, store query construction,
execution and ranking for the directory search endpoint.
"""
