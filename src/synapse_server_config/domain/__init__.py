"""Value objects, enumerations, and errors with no I/O."""
