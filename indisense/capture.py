"""
Input capture for the Indisense client.

A ``CaptureSession`` turns one of three kinds of user input into exactly one
``CapturePayload``: typed text, a selected media file, or a live recording
from a microphone (and camera, for video). Recording devices are supplied by
the caller through the ``MediaDevices`` protocol, so the session works the
same against a real capture backend or an in-memory fake.

A live recording is owned by a ``RecordingSession``. Every device track it
acquired is stopped on every way out of the recording state: a normal stop,
a device error, or closing the capture session.
"""

import base64
import logging
import mimetypes
from enum import Enum
from pathlib import Path
from typing import Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

from .errors import CaptureStateError, DeviceUnavailable, InvalidInput
from .models import InputKind

logger = logging.getLogger(__name__)

RECORDING_MIME_TYPES = {InputKind.AUDIO: "audio/webm", InputKind.VIDEO: "video/webm"}
RECORDING_FILE_NAME = "recording.webm"


# MARK: - Device Protocols


class MediaTrack(Protocol):
    kind: str
    ready_state: str

    def stop(self) -> None: ...


class MediaStream(Protocol):
    def get_tracks(self) -> list[MediaTrack]: ...


class MediaDevices(Protocol):
    async def get_user_media(self, *, audio: bool, video: bool) -> MediaStream: ...


# MARK: - Payloads


class TextPayload(BaseModel):
    """Typed text ready to be sent for analysis."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[InputKind.TEXT] = InputKind.TEXT
    text: str

    @property
    def endpoint(self) -> str:
        return "analyze-text"

    def to_request_body(self) -> dict[str, str]:
        return {"text": self.text}


class MediaPayload(BaseModel):
    """An uploaded or recorded media blob ready to be sent for analysis."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[InputKind.AUDIO, InputKind.VIDEO]
    data: bytes = Field(..., repr=False)
    mime_type: str
    source_name: str

    @property
    def endpoint(self) -> str:
        return f"analyze-{self.kind.value}"

    def to_request_body(self) -> dict[str, str]:
        return {
            "audioData": base64.b64encode(self.data).decode("ascii"),
            "mimeType": self.mime_type,
            "fileName": self.source_name,
        }


CapturePayload = TextPayload | MediaPayload


# MARK: - Recording


class RecordingSession:
    """
    One live recording: a device stream plus the chunks it has produced.

    Chunks are kept in arrival order. Once stopped, the session ignores any
    further chunk deliveries and holds no device tracks.
    """

    def __init__(self, stream: MediaStream, mime_type: str) -> None:
        self.mime_type = mime_type
        self._stream = stream
        self._chunks: list[bytes] = []
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def on_data(self, chunk: bytes) -> None:
        """Callback for each chunk the recorder delivers."""
        if self._active and chunk:
            self._chunks.append(chunk)

    def stop(self) -> bytes:
        """Stop recording, release the devices and return the joined chunks."""
        self._active = False
        self.release()
        return b"".join(self._chunks)

    def release(self) -> None:
        """Stop every track of the device stream. Safe to call repeatedly."""
        self._active = False
        for track in self._stream.get_tracks():
            track.stop()


# MARK: - Capture Session


class CaptureState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    AWAITING_DEVICE = "awaiting_device"
    RECORDING = "recording"
    READY = "ready"


class CaptureSession:
    """
    Collects one submission of a given input kind.

    Holds at most one candidate at a time: selecting a file discards a
    previous recording and recording discards a previously selected file.
    """

    def __init__(self, kind: InputKind, devices: MediaDevices | None = None) -> None:
        self.kind = kind
        self.state = CaptureState.IDLE
        self._devices = devices
        self._text = ""
        self._media: MediaPayload | None = None
        self._recording: RecordingSession | None = None

    def __enter__(self) -> "CaptureSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def accepted_mime_prefix(self) -> str | None:
        """MIME category accepted for file selection, None for text."""
        if self.kind is InputKind.TEXT:
            return None
        return f"{self.kind.value}/"

    @property
    def recording(self) -> RecordingSession | None:
        return self._recording

    @property
    def can_submit(self) -> bool:
        if self.kind is InputKind.TEXT:
            return self.state is CaptureState.EDITING
        return self.state is CaptureState.READY

    def set_text(self, text: str) -> None:
        """Update the typed text (text mode only)."""
        if self.kind is not InputKind.TEXT:
            raise CaptureStateError(f"Cannot type text in {self.kind.value} mode")
        self._text = text
        self.state = CaptureState.EDITING if text.strip() else CaptureState.IDLE

    def select_file(self, name: str, data: bytes, mime_type: str) -> None:
        """
        Use a file as the submission candidate.

        Args:
            name: Original file name
            data: File contents
            mime_type: Declared MIME type of the file

        Raises:
            InvalidInput: If the MIME type is outside this mode's category
        """
        prefix = self.accepted_mime_prefix
        if prefix is None:
            raise CaptureStateError("Text mode does not accept files")
        if self.state is CaptureState.RECORDING:
            raise CaptureStateError("Stop the recording before selecting a file")
        if not mime_type.lower().startswith(prefix):
            raise InvalidInput(
                f"Unsupported file type {mime_type or 'unknown'}, expected {prefix}*"
            )

        self._media = MediaPayload(
            kind=self.kind, data=data, mime_type=mime_type, source_name=name
        )
        self.state = CaptureState.READY

    def select_path(self, path: str | Path) -> None:
        """Select a file from disk, guessing its MIME type from its name."""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        self.select_file(path.name, path.read_bytes(), mime_type or "")

    async def start_recording(self) -> RecordingSession:
        """
        Acquire the recording devices and start collecting chunks.

        Returns:
            The RecordingSession that receives chunks via ``on_data``

        Raises:
            DeviceUnavailable: If no device is available or access is denied
        """
        if self.kind is InputKind.TEXT:
            raise CaptureStateError("Text mode cannot record")
        if self.state in (CaptureState.AWAITING_DEVICE, CaptureState.RECORDING):
            raise CaptureStateError("A recording is already in progress")
        if self._devices is None:
            raise DeviceUnavailable("No recording device available")

        previous_state = self.state
        self.state = CaptureState.AWAITING_DEVICE
        try:
            stream = await self._devices.get_user_media(
                audio=True, video=self.kind is InputKind.VIDEO
            )
        except Exception as e:
            if self.state is CaptureState.AWAITING_DEVICE:
                self.state = previous_state
            logger.error("Error accessing media devices: %s", e)
            raise DeviceUnavailable(f"Could not access the recording device: {e}") from e

        if self.state is not CaptureState.AWAITING_DEVICE:
            # Closed while waiting for the device grant
            for track in stream.get_tracks():
                track.stop()
            raise CaptureStateError("Capture session closed during device request")

        self._media = None
        self._recording = RecordingSession(stream, RECORDING_MIME_TYPES[self.kind])
        self.state = CaptureState.RECORDING
        return self._recording

    def stop_recording(self) -> MediaPayload:
        """
        Finish the recording and make it the submission candidate.

        Returns:
            The recorded media, tagged with the mode's recording MIME type
        """
        if self.state is not CaptureState.RECORDING or self._recording is None:
            raise CaptureStateError("Not recording")

        recording, self._recording = self._recording, None
        data = recording.stop()
        self._media = MediaPayload(
            kind=self.kind,
            data=data,
            mime_type=recording.mime_type,
            source_name=RECORDING_FILE_NAME,
        )
        self.state = CaptureState.READY
        return self._media

    def submit(self) -> CapturePayload:
        """
        Hand over the current candidate exactly once and return to idle.

        Raises:
            CaptureStateError: If there is nothing to submit or a recording is running
        """
        if self.state is CaptureState.RECORDING:
            raise CaptureStateError("Stop the recording before submitting")
        if not self.can_submit:
            raise CaptureStateError("Nothing to submit")

        payload: CapturePayload
        if self.kind is InputKind.TEXT:
            payload = TextPayload(text=self._text.strip())
        else:
            if self._media is None:
                raise CaptureStateError("Nothing to submit")
            payload = self._media

        self._text = ""
        self._media = None
        self.state = CaptureState.IDLE
        return payload

    def close(self) -> None:
        """Release any live recording and drop the current candidate."""
        if self._recording is not None:
            self._recording.release()
            self._recording = None
        self._text = ""
        self._media = None
        self.state = CaptureState.IDLE
