"""
Infrastructure layer: configuration, logging, and storage-backed services.
"""
