"""Porter - auth gateway in front of the hosted identity backend."""
