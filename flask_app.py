import logging
import random
import socket
from typing import List, Optional

from flask import Flask, jsonify, render_template_string, request

import config
from catalog import load_catalog
from errors import CatalogEmptyError, InvalidInputError, KaraokeError, NotFoundError
from queue_store import QueueStore

logger = logging.getLogger(__name__)

HTML_TEMPLATE = """
<!doctype html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Karaoke Queue</title>
    <style>
        body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; max-width: 900px; margin: 2rem auto; padding: 0 1rem; background: #f4f4f9; color: #333; }
        .container { background: white; padding: 2rem; border-radius: 12px; box-shadow: 0 4px 6px rgba(0,0,0,0.1); }
        h1 { margin-top: 0; color: #2c3e50; text-align: center; }
        .form-group { margin-bottom: 1rem; }
        input[type="text"] { width: 100%; padding: 12px; border: 2px solid #ddd; border-radius: 8px; box-sizing: border-box; font-size: 1rem; margin-top: 5px; }
        label { font-weight: bold; color: #555; }
        button { width: 100%; background: #3498db; color: white; border: none; padding: 12px; border-radius: 8px; cursor: pointer; font-size: 1.1rem; font-weight: bold; margin-top: 10px; }
        .message { padding: 12px; margin-bottom: 1.5rem; border-radius: 8px; text-align: center; display: none; }
        .success { display: block; background: #d4edda; color: #155724; }
        .error { display: block; background: #f8d7da; color: #721c24; }
        table { width: 100%; border-collapse: collapse; margin-top: 1rem; }
        th, td { text-align: left; padding: 12px; border-bottom: 1px solid #eee; }
        .empty-msg { text-align: center; color: #888; padding: 1.5rem; font-style: italic; }
        .user-tag { background: #e8f4f8; padding: 2px 6px; border-radius: 4px; font-size: 0.9em; color: #2980b9; }
    </style>
</head>
<body>
    <div class="container">
        <h1>Add a Song</h1>
        <div id="message" class="message"></div>
        <form id="add-url-form">
            <div class="form-group">
                <label for="submitterName">Your Name:</label>
                <input type="text" id="submitterName" name="submitterName" placeholder="Enter your name" required>
            </div>
            <div class="form-group">
                <label for="sourceUrl">YouTube URL:</label>
                <input type="text" id="sourceUrl" name="sourceUrl" placeholder="Paste YouTube URL here..." required>
            </div>
            <button type="submit">Add to Queue</button>
        </form>

        <h2>Current Queue</h2>
        {% if entries %}
        <table>
            <thead><tr><th>#</th><th>Title</th><th>User</th></tr></thead>
            <tbody>
            {% for entry in entries %}
                <tr>
                    <td>{{ loop.index }}</td>
                    <td><a href="{{ entry.source_url }}" target="_blank">{{ entry.title }}</a></td>
                    <td><span class="user-tag">{{ entry.submitter_name }}</span></td>
                </tr>
            {% endfor %}
            </tbody>
        </table>
        {% else %}
        <div class="empty-msg">The queue is currently empty.</div>
        {% endif %}
    </div>

    <script>
        document.getElementById('add-url-form').addEventListener('submit', async function(e) {
            e.preventDefault();
            const messageDiv = document.getElementById('message');
            const response = await fetch('/queue', {
                method: 'POST',
                body: new URLSearchParams(new FormData(this)),
            });
            const result = await response.json();
            if (response.ok) {
                messageDiv.className = 'message success';
                messageDiv.textContent = `Added '${result.entry.title}'!`;
                setTimeout(() => window.location.reload(), 1000);
            } else {
                messageDiv.className = 'message error';
                messageDiv.textContent = result.error;
            }
        });
    </script>
</body>
</html>
"""


def _request_field(*names) -> Optional[str]:
    """Read the first present field from a JSON body or a form post."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = request.form
    for name in names:
        value = data.get(name)
        if value is not None:
            return value
    return None


def create_app(store: Optional[QueueStore] = None, catalog: Optional[List[str]] = None) -> Flask:
    app = Flask(__name__)
    if store is None:
        store = QueueStore(config.QUEUE_FILE, metadata_timeout=config.METADATA_TIMEOUT)
    if catalog is None:
        catalog = load_catalog(config.CATALOG_FILE)
    app.config["QUEUE_STORE"] = store
    app.config["FALLBACK_CATALOG"] = catalog
    app.config["AUTO_DJ_NAME"] = config.AUTO_DJ_NAME

    @app.errorhandler(KaraokeError)
    def handle_queue_error(e):
        if e.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {e}")
        return jsonify({"error": str(e)}), e.status_code

    @app.route("/", methods=["GET"])
    def index():
        return render_template_string(HTML_TEMPLATE, entries=store.list_all())

    @app.route("/queue", methods=["POST"])
    def submit():
        source_url = _request_field("sourceUrl", "youtubeUrl")
        submitter_name = _request_field("submitterName", "userName")
        title = _request_field("title")

        if not source_url or not submitter_name:
            raise InvalidInputError("sourceUrl and submitterName are required")
        if not isinstance(source_url, str) or not isinstance(submitter_name, str):
            raise InvalidInputError("sourceUrl and submitterName must be strings")
        if title is not None and not isinstance(title, str):
            raise InvalidInputError("title must be a string")

        entry = store.append(source_url, submitter_name, title=title or None)
        return jsonify({"success": True, "entry": entry.to_record()}), 201

    @app.route("/queue/current", methods=["GET"])
    def current():
        entries = store.list_all()
        return jsonify({
            "current": entries[0].to_record() if entries else None,
            "queue": [entry.to_record() for entry in entries[1:]],
            "queueLength": len(entries),
            "upNext": max(0, len(entries) - 1),
        })

    @app.route("/queue/current", methods=["DELETE"])
    def advance():
        removed = store.pop_current()
        if removed is None:
            raise NotFoundError("No video in queue to remove")
        return jsonify({"success": True, "removed": removed.to_record()})

    @app.route("/queue/entry", methods=["DELETE"])
    def delete_entry():
        entry_id = _request_field("id")
        if not entry_id or not isinstance(entry_id, str):
            raise InvalidInputError("Entry ID is required")
        if not store.delete_by_id(entry_id):
            raise NotFoundError("Entry not found")
        return jsonify({"success": True, "message": "Entry deleted successfully"})

    @app.route("/queue/auto", methods=["POST"])
    def auto_fill():
        fallback = app.config["FALLBACK_CATALOG"]
        if not fallback:
            raise CatalogEmptyError("No videos found in catalog")
        entry = store.append(random.choice(fallback), app.config["AUTO_DJ_NAME"])
        logger.info(f"Auto-DJ queued '{entry.title}'")
        return jsonify({"success": True, "entry": entry.to_record(), "message": "Random song auto-enqueued"}), 201

    return app


def _local_ip() -> str:
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        s.connect(("8.8.8.8", 80))  # No traffic is sent; this picks the outbound interface
        return s.getsockname()[0]
    finally:
        s.close()


def run_flask(app: Optional[Flask] = None):
    from zeroconf import ServiceInfo, Zeroconf

    if app is None:
        app = create_app()

    zeroconf = None
    info = None
    try:
        if config.MDNS_ENABLED:
            try:
                ip_address = _local_ip()
                info = ServiceInfo(
                    "_http._tcp.local.",
                    f"{config.MDNS_NAME}._http._tcp.local.",
                    addresses=[socket.inet_aton(ip_address)],
                    port=config.PORT,
                    properties={"path": "/"},
                    server="karaoke.local.",
                )
                zeroconf = Zeroconf()
                zeroconf.register_service(info)
                logger.info(f"mDNS service registered: http://karaoke.local:{config.PORT} (or http://{ip_address}:{config.PORT})")
            except OSError as e:
                logger.warning(f"mDNS registration skipped: {e}")
                zeroconf = None

        app.run(host=config.HOST, port=config.PORT, debug=False, use_reloader=False)
    finally:
        if zeroconf:
            logger.info("Unregistering mDNS service...")
            zeroconf.unregister_service(info)
            zeroconf.close()
