"""Image decoding, planning and encoding."""
