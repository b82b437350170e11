"""Core domain: models, codecs and contracts with no I/O."""
