"""
Infrastructure services: upload storage, file streaming and thumbnails.
"""
