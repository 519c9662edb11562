"""Append-only rendering of broadcast transcript fragments."""

import sys
from typing import TextIO

from caption_relay.common import ChannelMessage


class TranscriptDisplay:
    """Writes fragments, starting a labeled line whenever the speaker changes."""

    def __init__(self, output: TextIO | None = None):
        self._output = output if output is not None else sys.stdout
        self._parts: list[str] = []
        self._last_speaker: str | None = None

    def on_message(self, message: ChannelMessage) -> None:
        self.append(message.name, message.text)

    def append(self, speaker: str, text: str) -> None:
        if speaker != self._last_speaker:
            self._write(f"\n{speaker}: ")
            self._last_speaker = speaker
        self._write(f"{text} ")

    def render(self) -> str:
        return "".join(self._parts)

    def _write(self, chunk: str) -> None:
        self._parts.append(chunk)
        self._output.write(chunk)
        self._output.flush()
