"""linestage — stage individual diff lines into the git index."""

__version__ = "0.1.0"
