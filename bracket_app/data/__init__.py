"""
Typed data models and decimal-safe parsing of exchange payloads.
"""
