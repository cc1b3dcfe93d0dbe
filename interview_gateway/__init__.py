"""Core library for the interview gateway.

Request governance (rate limits, usage caps, cost degradation) and the
vendor-backed AI and voice providers used by the gateway service.
"""
