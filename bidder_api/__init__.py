"""
Control API for the marketplace bidder.
"""
