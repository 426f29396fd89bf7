"""
API key discovery: mines the marktguru web front door for key candidates
and keeps the first one the offer search API accepts.

Usage:
    from marktguru.auth.runner import discover_api_key
    key = await discover_api_key(progress=print)
"""
