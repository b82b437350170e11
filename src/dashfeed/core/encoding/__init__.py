"""Wire and export encodings."""
