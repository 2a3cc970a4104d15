"""
Application layer for the signals bounded context.
"""
