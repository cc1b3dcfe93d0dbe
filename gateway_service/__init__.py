"""
Gateway service package.

HTTP surface of the interview coach: governance chain, routes and the
app factory.
"""
