"""Model versioning, dashboard assembly and admin reporting"""

__version__ = "1.0.0"
