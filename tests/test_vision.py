"""Tests for upload decoding and the Gemini vision client."""

import base64
import json
from unittest.mock import MagicMock

import cv2
import numpy as np
import pytest
import requests

from approach import TrafficDensity
from vision import (ANALYSIS_SCHEMA, AnalysisServiceError, GeminiVisionService,
                    InvalidUploadError, encode_jpeg, load_frame, parse_analysis_response,
                    prepare_upload, resize_for_display)


def png_bytes(width=64, height=32):
    frame = np.full((height, width, 3), 127, dtype=np.uint8)
    flag, encoded = cv2.imencode(".png", frame)
    assert flag
    return encoded.tobytes()


def gemini_body(answer):
    text = answer if isinstance(answer, str) else json.dumps(answer)
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def fake_response(status=200, body=None):
    response = MagicMock()
    response.status_code = status
    response.text = json.dumps(body) if body is not None else ""
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


class TestUploadDecoding:

    def test_decodes_image(self):
        frame = load_frame(png_bytes(), "image/png")
        assert frame.shape == (32, 64, 3)

    def test_rejects_garbage(self):
        with pytest.raises(InvalidUploadError):
            load_frame(b"definitely not an image", "image/jpeg")

    def test_rejects_empty(self):
        with pytest.raises(InvalidUploadError):
            load_frame(b"", "image/png")

    def test_rejects_undecodable_video(self):
        with pytest.raises(InvalidUploadError):
            load_frame(b"not a video", "video/mp4")

    def test_invalid_upload_is_a_service_error(self):
        assert issubclass(InvalidUploadError, AnalysisServiceError)

    def test_prepare_image_passes_bytes_through(self):
        data = png_bytes()
        frame, image_bytes, mime = prepare_upload(data, "image/png")
        assert image_bytes is data
        assert mime == "image/png"
        assert frame is not None

    def test_resize_keeps_aspect(self):
        frame = np.zeros((100, 200, 3), dtype=np.uint8)
        assert resize_for_display(frame, width=100).shape == (50, 100, 3)

    def test_encode_jpeg(self):
        data = encode_jpeg(np.zeros((10, 10, 3), dtype=np.uint8))
        assert data[:2] == b"\xff\xd8"


class TestParseResponse:

    def test_valid(self, sample_payload):
        result = parse_analysis_response(gemini_body(sample_payload))
        assert result.vehicle_counts.cars == 3
        assert result.traffic_density == TrafficDensity.MEDIUM

    def test_no_candidates(self):
        with pytest.raises(AnalysisServiceError, match="No response"):
            parse_analysis_response({"candidates": []})

    def test_empty_text(self):
        with pytest.raises(AnalysisServiceError):
            parse_analysis_response(gemini_body(""))

    def test_not_json(self):
        with pytest.raises(AnalysisServiceError, match="not JSON"):
            parse_analysis_response(gemini_body("{broken"))

    def test_schema_mismatch(self, sample_payload):
        sample_payload["ambulance_present"] = "yes"
        with pytest.raises(AnalysisServiceError, match="schema"):
            parse_analysis_response(gemini_body(sample_payload))


class TestGeminiVisionService:

    def make_service(self, response=None, error=None):
        session = MagicMock()
        if error is not None:
            session.post.side_effect = error
        else:
            session.post.return_value = response
        return GeminiVisionService(api_key="test-key", model="test-model", timeout=3, session=session), session

    def test_request_shape(self, sample_payload):
        service, session = self.make_service(fake_response(body=gemini_body(sample_payload)))
        result = service.analyze(b"\x89PNG-bytes", "image/png")

        assert result.summary == sample_payload["summary"]
        args, kwargs = session.post.call_args
        assert args[0].endswith("/models/test-model:generateContent")
        assert kwargs["params"] == {"key": "test-key"}
        assert kwargs["timeout"] == 3
        body = kwargs["json"]
        inline = body["contents"][0]["parts"][0]["inline_data"]
        assert inline["mime_type"] == "image/png"
        assert base64.b64decode(inline["data"]) == b"\x89PNG-bytes"
        assert body["generationConfig"]["responseMimeType"] == "application/json"
        assert body["generationConfig"]["responseSchema"] is ANALYSIS_SCHEMA

    def test_network_failure(self):
        service, _ = self.make_service(error=requests.ConnectionError("down"))
        with pytest.raises(AnalysisServiceError, match="request failed"):
            service.analyze(b"x", "image/png")

    def test_http_error(self):
        service, _ = self.make_service(fake_response(status=503, body={"error": "busy"}))
        with pytest.raises(AnalysisServiceError, match="503"):
            service.analyze(b"x", "image/png")

    def test_non_json_body(self):
        service, _ = self.make_service(fake_response(status=200, body=None))
        with pytest.raises(AnalysisServiceError, match="non-JSON"):
            service.analyze(b"x", "image/png")

    def test_missing_api_key(self):
        service = GeminiVisionService(api_key="", session=MagicMock())
        with pytest.raises(AnalysisServiceError, match="GEMINI_API_KEY"):
            service.analyze(b"x", "image/png")
        service.session.post.assert_not_called()
