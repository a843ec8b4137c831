"""Astros roster sync.

Fetches the current list of people in space from the open-notify feed,
reconciles it against the stored roster, and backfills a photo for each
person via Google Custom Search.
"""
