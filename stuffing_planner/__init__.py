"""Container stuffing plans: readiness, duplicate checks and packing-list assignment."""

__version__ = "0.1.0"
