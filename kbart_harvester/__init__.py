"""
kbart-harvester: concurrent downloader for KBART holdings files.
"""

__version__ = "0.4.0"
