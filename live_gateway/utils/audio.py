import io
import wave
from typing import Optional

DEFAULT_PCM_SAMPLE_RATE = 16000
PCM_SAMPLE_WIDTH = 2  # PCM16
PCM_CHANNELS = 1


def parse_pcm_mime(mime_type: str) -> Optional[int]:
    """Return the sample rate of an ``audio/pcm`` MIME type, else None.

    ``audio/pcm;rate=24000`` yields 24000; a bare ``audio/pcm`` (or
    ``audio/l16``) falls back to 16 kHz.
    """
    if not mime_type:
        return None
    base, _, params = mime_type.partition(";")
    if base.strip().lower() not in {"audio/pcm", "audio/l16"}:
        return None
    for param in params.split(";"):
        key, _, value = param.partition("=")
        if key.strip().lower() == "rate":
            try:
                rate = int(value.strip())
            except ValueError:
                return DEFAULT_PCM_SAMPLE_RATE
            return rate if rate > 0 else DEFAULT_PCM_SAMPLE_RATE
    return DEFAULT_PCM_SAMPLE_RATE


def pcm16_to_wav(pcm_bytes: bytes, sample_rate: int = DEFAULT_PCM_SAMPLE_RATE) -> bytes:
    """Wrap raw PCM16 mono bytes in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(PCM_CHANNELS)
        wav.setsampwidth(PCM_SAMPLE_WIDTH)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm_bytes)
    return buffer.getvalue()
