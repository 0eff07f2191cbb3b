"""
Academia: course catalog, faculty assignments and assessment content API
"""
__version__ = "1.0.0"
