"""
hxgny – school information data layer.

Fetches class offerings, weekly notices and one-column pages from public
sheets, caches them locally and keeps the user's saved schedule.
"""
