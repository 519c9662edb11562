"""Transcription relay: one live transcription session per present participant."""
