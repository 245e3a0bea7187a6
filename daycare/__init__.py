"""
Daycare parent portal backend.
"""
