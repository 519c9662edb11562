"""Live captions relay: pub/sub audio in, live transcripts out."""

__version__ = "0.1.0"
