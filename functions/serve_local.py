#!/usr/bin/env python3
"""Local development server for the cost estimator functions.

This server mimics the Firebase Functions emulator endpoints so the web
client can be developed without deploying.

Usage:
    cd functions
    source venv/bin/activate
    python serve_local.py

This will start a Flask server that handles:
- POST /<project>/us-central1/calculate_estimate
- POST /<project>/us-central1/get_slider_defaults
- POST /<project>/us-central1/<project and estimate CRUD endpoints>
- POST /<project>/us-central1/compare_estimates
"""

import os

# Set environment for local development
os.environ.setdefault('FUNCTIONS_EMULATOR', 'true')
os.environ.setdefault('GCLOUD_PROJECT', 'buildout-estimator-dev')
os.environ.setdefault('FIRESTORE_EMULATOR_HOST', '127.0.0.1:8081')

from flask import Flask, request, jsonify
from flask_cors import CORS

# Import the main module after setting env vars
import main

PROJECT_ID = os.environ['GCLOUD_PROJECT']

ENDPOINTS = (
    "health",
    "calculate_estimate",
    "get_slider_defaults",
    "load_shared_state",
    "list_projects",
    "get_project",
    "create_project",
    "update_project",
    "archive_project",
    "create_project_with_estimate",
    "list_estimates",
    "get_estimates",
    "create_estimate",
    "update_estimate",
    "archive_estimate",
    "delete_project",
    "delete_estimate",
    "compare_estimates",
)

app = Flask(__name__)
CORS(app)


class MockRequest:
    """Mock Firebase request object to wrap Flask request."""

    def __init__(self, flask_request):
        self._request = flask_request
        self._json_data = None
        self.method = flask_request.method
        self.headers = dict(flask_request.headers)

    def get_json(self, force=False):
        if self._json_data is None:
            self._json_data = self._request.get_json(force=force, silent=True) or {}
        return self._json_data


def wrap_firebase_function(firebase_fn, name):
    """Wrap a Firebase function to work with Flask."""
    def wrapper():
        mock_req = MockRequest(request)
        response = firebase_fn(mock_req)
        return response.get_data(), response.status_code, dict(response.headers)
    wrapper.__name__ = f"handle_{name}"
    return wrapper


for endpoint in ENDPOINTS:
    app.add_url_rule(
        f'/{PROJECT_ID}/us-central1/{endpoint}',
        view_func=wrap_firebase_function(getattr(main, endpoint), endpoint),
        methods=['POST', 'OPTIONS']
    )


# Health check
@app.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok', 'service': 'buildout-estimator-functions'})


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5002))
    print(f"""
╔════════════════════════════════════════════════════════════════╗
║  Build-Out Cost Estimator - Local Development Server           ║
╠════════════════════════════════════════════════════════════════╣
║                                                                ║
║  Server running on: http://127.0.0.1:{port}                     ║
║                                                                ║
║  Endpoints:                                                    ║
║  • POST /{PROJECT_ID}/us-central1/calculate_estimate
║  • POST /{PROJECT_ID}/us-central1/compare_estimates
║  • POST /{PROJECT_ID}/us-central1/<crud endpoint>
║                                                                ║
╚════════════════════════════════════════════════════════════════╝
""")
    app.run(host='127.0.0.1', port=port, debug=True, threaded=True)
