from .flags import bp as flags_bp
from .ops import ops_bp

__all__ = ["flags_bp", "ops_bp"]
