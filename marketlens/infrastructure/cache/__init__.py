"""
Cache store adapters implementing CacheStorePort.
"""
