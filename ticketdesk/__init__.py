"""Operations console ticket engine."""

__version__ = "0.1.0"
