"""Coercion, defaults, and merge policy; free of I/O."""
