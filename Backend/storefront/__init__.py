"""
Storefront catalog backend: per-shop catalog retrieval with caching.
"""
