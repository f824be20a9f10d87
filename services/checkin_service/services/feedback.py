"""Admit/deny feedback for the front desk.

The validator only reports outcomes to a ``FeedbackSink``. The default sink
turns each outcome into a ``FeedbackEvent`` describing what the front-desk
screen should do: which flash colour to show, for how long, and which tone
to play. Tones are synthesised procedurally into WAV bytes, so there are no
audio assets to ship.
"""

import io
import math
import wave
from array import array
from dataclasses import dataclass, field
from typing import Callable, Literal, Optional, Protocol

from libs.common.logging import get_logger
from services.checkin_service.schemas import CheckInVerdict

logger = get_logger(__name__)

SAMPLE_RATE = 22050
DEFAULT_FLASH_DURATION_MS = 1000


@dataclass(frozen=True)
class ToneSpec:
    """A single oscillator with an exponential gain decay."""

    name: str
    frequency_hz: float
    waveform: Literal["sine", "sawtooth"]
    duration_s: float
    start_gain: float = 0.3
    end_gain: float = 0.01


ADMIT_TONE = ToneSpec(name="admit", frequency_hz=800.0, waveform="sine", duration_s=0.3)
DENY_TONE = ToneSpec(
    name="deny", frequency_hz=200.0, waveform="sawtooth", duration_s=0.5
)
TONES = {ADMIT_TONE.name: ADMIT_TONE, DENY_TONE.name: DENY_TONE}


def _oscillator(waveform: str, phase: float) -> float:
    # phase is measured in cycles
    if waveform == "sine":
        return math.sin(2 * math.pi * phase)
    if waveform == "sawtooth":
        return 2.0 * (phase - math.floor(phase + 0.5))
    raise ValueError(f"Unsupported waveform: {waveform}")


def render_samples(tone: ToneSpec, sample_rate: int = SAMPLE_RATE) -> array:
    """Render a tone as signed 16-bit mono samples."""
    total = max(1, int(tone.duration_s * sample_rate))
    ratio = tone.end_gain / tone.start_gain
    samples = array("h")
    for i in range(total):
        t = i / sample_rate
        gain = tone.start_gain * ratio ** (t / tone.duration_s)
        value = gain * _oscillator(tone.waveform, tone.frequency_hz * t)
        samples.append(int(max(-1.0, min(1.0, value)) * 32767))
    return samples


def synthesize_tone(tone: ToneSpec, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Return a complete WAV file for ``tone``."""
    samples = render_samples(tone, sample_rate)
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(samples.tobytes())
    return buffer.getvalue()


@dataclass
class FeedbackEvent:
    kind: Literal["admitted", "denied"]
    flash: Literal["green", "red"]
    flash_duration_ms: int
    tone: ToneSpec
    message: str
    verdict: CheckInVerdict = field(repr=False)


class FeedbackSink(Protocol):
    def on_admit(self, verdict: CheckInVerdict) -> None: ...

    def on_deny(self, verdict: CheckInVerdict) -> None: ...


class ToneFeedbackSink:
    """Builds front-desk feedback events and hands them to listeners.

    The flash is not timed here; ``flash_duration_ms`` tells the
    presentation layer when to clear it.
    """

    def __init__(
        self,
        flash_duration_ms: int = DEFAULT_FLASH_DURATION_MS,
        listeners: Optional[list[Callable[[FeedbackEvent], None]]] = None,
    ):
        self.flash_duration_ms = flash_duration_ms
        self.listeners = list(listeners or [])
        self.last_event: Optional[FeedbackEvent] = None

    def on_admit(self, verdict: CheckInVerdict) -> None:
        self._publish(
            FeedbackEvent(
                kind="admitted",
                flash="green",
                flash_duration_ms=self.flash_duration_ms,
                tone=ADMIT_TONE,
                message=f"Welcome, {verdict.member_name}!",
                verdict=verdict,
            )
        )

    def on_deny(self, verdict: CheckInVerdict) -> None:
        self._publish(
            FeedbackEvent(
                kind="denied",
                flash="red",
                flash_duration_ms=self.flash_duration_ms,
                tone=DENY_TONE,
                message=verdict.reason or "Check-in failed",
                verdict=verdict,
            )
        )

    def _publish(self, event: FeedbackEvent) -> None:
        self.last_event = event
        for listener in self.listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Feedback listener failed for %s event", event.kind)
