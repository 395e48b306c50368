"""Application layer: DTOs, Backend Service ports, query builder and services.

Depends only on domain and protocol definitions; infrastructure implements
the ports (REST row store, blob stores, redis change feed).
"""
