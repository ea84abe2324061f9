"""Parts catalog service: catalog normalization, compatible-parts lookup and VIN decoding."""

__version__ = "1.0.0"
