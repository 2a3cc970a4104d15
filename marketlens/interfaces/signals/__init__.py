"""
Signals bounded context: HTTP interface.
"""
