"""generelate: gene set enrichment statistics and term clustering for species annotation data."""

__version__ = "0.1.0"
