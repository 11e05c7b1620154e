# vision.py

import base64
import json
import os
import tempfile

import cv2
import numpy as np
import requests

from approach import AnalysisFormatError, AnalysisResult
import constants


class AnalysisServiceError(Exception):
    """The vision service failed or returned something that is not an analysis."""


class InvalidUploadError(AnalysisServiceError):
    """The uploaded bytes could not be decoded as an image or video."""


# JSON schema the model is asked to answer with. Mirrors AnalysisResult.
ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "ambulance_present": {"type": "BOOLEAN", "description": "Whether an ambulance or emergency vehicle is visible."},
        "accident_present": {"type": "BOOLEAN", "description": "Whether a traffic accident or crash is visible."},
        "fight_present": {"type": "BOOLEAN", "description": "Whether a physical altercation or fight between people is visible."},
        "vehicle_counts": {
            "type": "OBJECT",
            "properties": {
                "trucks": {"type": "INTEGER", "description": "Count of heavy vehicles like trucks or buses."},
                "cars": {"type": "INTEGER", "description": "Count of standard cars, SUVs, or vans."},
                "bikes": {"type": "INTEGER", "description": "Count of motorcycles or bicycles."},
            },
            "required": ["trucks", "cars", "bikes"],
        },
        "traffic_density": {"type": "STRING", "enum": ["Low", "Medium", "High"]},
        "summary": {"type": "STRING", "description": "A brief one-sentence summary of the road status."},
    },
    "required": ["ambulance_present", "accident_present", "fight_present",
                 "vehicle_counts", "traffic_density", "summary"],
}


def _read_first_video_frame(data, mime_type):
    """Videos can only be opened from a file, so the bytes are spilled to a temp file."""
    suffix = {
        'video/mp4': '.mp4',
        'video/quicktime': '.mov',
        'video/x-msvideo': '.avi',
        'video/x-matroska': '.mkv',
        'video/webm': '.webm',
    }.get(mime_type, '.mp4')
    fd, path = tempfile.mkstemp(suffix=suffix)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        cap = cv2.VideoCapture(path)
        try:
            if not cap.isOpened():
                return None
            success, frame = cap.read()
            return frame if success else None
        finally:
            cap.release()
    finally:
        os.remove(path)


def load_frame(data, mime_type):
    """
    Decodes uploaded bytes into a BGR frame.

    Images are decoded directly; for videos the first readable frame is used.
    Raises InvalidUploadError if nothing can be decoded.
    """
    if not data:
        raise InvalidUploadError("Upload is empty")
    if mime_type.startswith('video/'):
        frame = _read_first_video_frame(data, mime_type)
    else:
        frame = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if frame is None:
        raise InvalidUploadError(f"Could not decode upload as {mime_type}")
    return frame


def resize_for_display(frame, width=constants.RESIZE_WIDTH):
    height = max(1, int(frame.shape[0] * width / frame.shape[1]))
    return cv2.resize(frame, (width, height))


def encode_jpeg(frame, quality=constants.JPEG_QUALITY):
    flag, encoded = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not flag:
        raise InvalidUploadError("Could not encode frame as JPEG")
    return encoded.tobytes()


def prepare_upload(data, mime_type):
    """
    Returns (frame, image_bytes, image_mime_type) for an upload.

    The frame is kept for previews. Images are sent to the service as they
    were uploaded; videos are sent as a JPEG of their first frame.
    """
    frame = load_frame(data, mime_type)
    if mime_type.startswith('video/'):
        return frame, encode_jpeg(frame), 'image/jpeg'
    return frame, data, mime_type


def parse_analysis_response(payload):
    """Pulls the model's JSON answer out of a generateContent response body."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise AnalysisServiceError("No response from AI")
    if not text:
        raise AnalysisServiceError("No response from AI")
    try:
        return AnalysisResult.from_dict(json.loads(text))
    except json.JSONDecodeError as e:
        raise AnalysisServiceError(f"Model answer is not JSON: {e}")
    except AnalysisFormatError as e:
        raise AnalysisServiceError(f"Model answer does not match the analysis schema: {e}")


class GeminiVisionService:
    """
    Client for the Gemini generateContent REST endpoint.

    Sends one frame with the analysis prompt and asks for a JSON answer
    matching ANALYSIS_SCHEMA.
    """
    def __init__(self, api_key=None, model=None, timeout=None, session=None):
        self.api_key = api_key if api_key is not None else constants.GEMINI_API_KEY
        self.model = model or constants.GEMINI_MODEL
        self.timeout = timeout or constants.GEMINI_TIMEOUT
        self.session = session or requests.Session()

    @property
    def url(self):
        return constants.GEMINI_ENDPOINT.format(model=self.model)

    def build_request(self, image_bytes, mime_type):
        return {
            "contents": [{
                "parts": [
                    {"inline_data": {
                        "mime_type": mime_type,
                        "data": base64.b64encode(image_bytes).decode("ascii"),
                    }},
                    {"text": constants.ANALYSIS_PROMPT},
                ],
            }],
            "system_instruction": {"parts": [{"text": constants.ANALYSIS_SYSTEM_INSTRUCTION}]},
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": ANALYSIS_SCHEMA,
            },
        }

    def analyze(self, image_bytes, mime_type):
        """Returns an AnalysisResult for one frame, or raises AnalysisServiceError."""
        if not self.api_key:
            raise AnalysisServiceError("GEMINI_API_KEY is not set")
        try:
            response = self.session.post(
                self.url,
                params={"key": self.api_key},
                json=self.build_request(image_bytes, mime_type),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise AnalysisServiceError(f"Vision service request failed: {e}")

        if response.status_code != 200:
            raise AnalysisServiceError(
                f"Vision service returned {response.status_code}: {response.text[:200]}"
            )
        try:
            payload = response.json()
        except ValueError:
            raise AnalysisServiceError("Vision service returned a non-JSON body")
        return parse_analysis_response(payload)
