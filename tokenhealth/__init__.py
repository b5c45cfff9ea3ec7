"""TokenHealth: health-скоринг криптотокенов по данным публичных API."""

__version__ = "0.1.0"
