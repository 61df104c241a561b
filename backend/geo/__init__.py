"""
backend.geo — Country centroids and click snapping.
"""
