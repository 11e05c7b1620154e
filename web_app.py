# web_app.py

import argparse
import json
import threading
import time

from flask import Flask, Response, jsonify, render_template, request

from Alerts.telegram_alert import alerts_enabled, send_alert
from approach import Direction, OperatingMode
from event_log import EventLog
from Simulation.traffic_gui import draw_lights_on_frame, render_intersection
from traffic_system import IntersectionController
from vision import (AnalysisServiceError, GeminiVisionService, InvalidUploadError,
                    encode_jpeg, prepare_upload, resize_for_display)
import constants

# ===================================================================
# SHARED STATE & APPLICATION SETUP
# ===================================================================
app = Flask(__name__)
state_lock = threading.Lock()  # Guards the upload bookkeeping below, not the signals

event_log = EventLog()
traffic_system = IntersectionController(event_log)
vision_service = GeminiVisionService()
last_frames = {}           # Direction -> latest uploaded frame, resized for display
processing = set()         # Directions with an analysis in flight
stop_event = threading.Event()


class UploadInProgress(Exception):
    pass


def pre_flight_checks():
    """Checks for essential settings before starting the server."""
    print("--- Running Pre-flight Checks ---")
    if not constants.GEMINI_API_KEY:
        print("❌ ERROR: GEMINI_API_KEY is not set. Uploaded feeds cannot be analysed.")
        return False
    if not alerts_enabled():
        print("Note: TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID not set. Telegram alerts are off.")
    print("✅ All checks passed.")
    return True


def system_logic_thread():
    """
    A dedicated thread that ticks the controller once per interval.
    Vision requests never block it.
    """
    print("⚙️ System logic thread started.")
    while not stop_event.is_set():
        traffic_system.tick()
        stop_event.wait(constants.TICK_INTERVAL_SECONDS)
    print("System logic thread stopped.")


# ===================================================================
# ANALYSIS PIPELINE
# ===================================================================
def analyze_upload(direction, data, mime_type):
    """
    Runs one uploaded feed through the vision service and applies the result.

    The controller is only touched once the analysis has succeeded; on any
    failure the approach keeps its mode, phase and timer and only the
    processing flag is cleared.
    """
    with state_lock:
        if direction in processing:
            raise UploadInProgress(direction)
        processing.add(direction)

    name = direction.value
    event_log.info(f"Analyzing feed for {name}...")
    try:
        frame, image_bytes, image_type = prepare_upload(data, mime_type)
        with state_lock:
            last_frames[direction] = resize_for_display(frame)

        analysis = vision_service.analyze(image_bytes, image_type)
        event_log.success(f"Analysis complete for {name}. Density: {analysis.traffic_density.value}")

        previous_mode = traffic_system.approach(direction).mode
        snapshot = traffic_system.ingest_analysis(direction, analysis)
    except AnalysisServiceError:
        event_log.error(f"Failed to analyze {name}")
        raise
    finally:
        with state_lock:
            processing.discard(direction)

    if snapshot.mode != previous_mode:
        if snapshot.mode == OperatingMode.EMERGENCY:
            send_alert(f"🚑 Ambulance detected at {name}! Emergency protocol started.")
        elif snapshot.mode == OperatingMode.HAZARD:
            send_alert(f"⚠️ Hazard detected at {name}! Lane closed.")
    return snapshot, analysis


def parse_lane(lane):
    try:
        return Direction.parse(lane)
    except ValueError:
        return None


def format_sse(entry):
    return f"data: {json.dumps(entry.to_dict())}\n\n"


# ===================================================================
# FLASK ROUTES
# ===================================================================
@app.route('/')
def index():
    """Serves the main HTML page."""
    return render_template('index.html')


@app.route('/status')
def status():
    """Provides the current state of the intersection as JSON."""
    approaches = traffic_system.snapshot()
    with state_lock:
        busy = sorted(d.value for d in processing)
    return jsonify({
        'approaches': [a.to_dict() for a in approaches],
        'tick_mode': traffic_system.tick_mode.value,
        'processing': busy,
        'logs': [entry.to_dict() for entry in event_log.recent()],
    })


@app.route('/events')
def events():
    """Server-Sent Events endpoint for real-time log entries."""
    since = request.args.get('since', default=0, type=int)

    def generate_events(last_seq):
        while not stop_event.is_set():
            for entry in event_log.since(last_seq):
                last_seq = entry.seq
                yield format_sse(entry)
            time.sleep(constants.SSE_POLL_INTERVAL)
    return Response(generate_events(since), mimetype='text/event-stream')


@app.route('/analyze/<lane>', methods=['POST'])
def analyze(lane):
    """Accepts an image or video for one approach and applies the vision analysis."""
    direction = parse_lane(lane)
    if direction is None:
        return jsonify({'error': f"Invalid lane specified: {lane}"}), 404

    upload = request.files.get('file')
    if upload is None:
        return jsonify({'error': "No file uploaded (expected form field 'file')"}), 400
    mime_type = upload.mimetype or 'application/octet-stream'
    if mime_type not in constants.ALLOWED_UPLOAD_TYPES:
        return jsonify({'error': f"Unsupported file type: {mime_type}"}), 415

    try:
        snapshot, analysis = analyze_upload(direction, upload.read(), mime_type)
    except UploadInProgress:
        return jsonify({'error': f"{direction.value} is already being analysed"}), 409
    except InvalidUploadError as e:
        return jsonify({'error': str(e)}), 422
    except AnalysisServiceError as e:
        return jsonify({'error': str(e)}), 502

    return jsonify({'approach': snapshot.to_dict(), 'analysis': analysis.to_dict()})


@app.route('/preview/<lane>')
def preview(lane):
    """The last uploaded frame for a lane with its current signal drawn on it."""
    direction = parse_lane(lane)
    if direction is None:
        return "Invalid lane specified", 404
    with state_lock:
        frame = last_frames.get(direction)
    if frame is None:
        return "No feed uploaded for this lane", 404
    frame = draw_lights_on_frame(frame, traffic_system.approach(direction))
    return Response(encode_jpeg(frame), mimetype='image/jpeg')


@app.route('/intersection.jpg')
def intersection_image():
    """A rendered picture of all four signal heads."""
    frame = render_intersection(traffic_system.snapshot())
    return Response(encode_jpeg(frame), mimetype='image/jpeg')


# ===================================================================
# MAIN EXECUTION
# ===================================================================
if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Adaptive intersection signal controller")
    parser.add_argument('--host', default=constants.WEB_HOST)
    parser.add_argument('--port', type=int, default=constants.WEB_PORT)
    args = parser.parse_args()

    pre_flight_checks()

    logic_thread = threading.Thread(target=system_logic_thread, daemon=True)
    try:
        print("Starting background threads...")
        logic_thread.start()

        print(f"Flask server starting... Open http://127.0.0.1:{args.port} in your browser.")
        print("Press CTRL+C to stop the server.")
        app.run(host=args.host, port=args.port, debug=False, threaded=True)
    except KeyboardInterrupt:
        print("\nCTRL+C detected. Shutting down gracefully...")
    finally:
        stop_event.set()
        print("Waiting for background threads to finish...")
        logic_thread.join()
        print("All threads stopped. Exiting.")
