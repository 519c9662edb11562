"""Terminal participant client: microphone capture and live caption display."""
