from .notices import bp as notices_bp
from .rent import bp as rent_bp

__all__ = ["notices_bp", "rent_bp"]
