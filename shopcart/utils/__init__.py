from .validators import is_blank, is_numeric, is_valid_string, to_float, to_int

__all__ = ["is_blank", "is_numeric", "is_valid_string", "to_float", "to_int"]
