"""
HTTP API over stored used-car listings.
"""
