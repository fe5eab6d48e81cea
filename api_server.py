#!/usr/bin/env python3
"""
Screenshot Stitcher API Server
Accepts an ordered set of screenshots and returns them stitched into one PNG.
"""

import os
import json
import logging
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.utils import secure_filename

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

# Import services and models
from services.image_service import ImageService
from pipeline.stitch_images import stitch_to_png
from pipeline.resolve_inputs import resolve_header_height, drop_flagged_images, sort_by_name
from models.analysis import AnalysisResult
from models.separator_style import SeparatorStyle, DEFAULT_SEPARATOR_COLOR
from models.errors import AllocationError, DecodeError, StitchError

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,webp,bmp").split(","))
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "100")) * 1024 * 1024
SEPARATOR_HEIGHT = int(os.getenv("SEPARATOR_HEIGHT", "3"))
SEPARATOR_COLOR = os.getenv("SEPARATOR_COLOR", DEFAULT_SEPARATOR_COLOR)

app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

# Initialize services
image_service = ImageService()

logger = logging.getLogger(__name__)


class BadRequest(ValueError):
    """A form field could not be parsed."""


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def _form_int(name: str, default: int = 0) -> int:
    raw = request.form.get(name, '').strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise BadRequest(f"'{name}' must be an integer, got {raw!r}") from None
    if value < 0:
        raise BadRequest(f"'{name}' must be non-negative, got {value}")
    return value


def _form_bool(name: str) -> bool:
    return request.form.get(name, '').strip().lower() in ('1', 'true', 'yes', 'on')


def _form_indices(name: str) -> List[int]:
    raw = request.form.get(name, '').strip()
    if not raw:
        return []
    try:
        return [int(part) for part in raw.split(',') if part.strip()]
    except ValueError:
        raise BadRequest(f"'{name}' must be a comma-separated list of integers") from None


def _form_analysis() -> Optional[AnalysisResult]:
    raw = request.form.get('analysis', '').strip()
    if not raw:
        return None
    try:
        return AnalysisResult.from_dict(json.loads(raw))
    except (ValueError, KeyError, TypeError) as e:
        raise BadRequest(f"'analysis' is not a valid analysis result: {e}") from None


def _separator_from_form() -> SeparatorStyle:
    if not _form_bool('separator'):
        return SeparatorStyle.none()
    height = _form_int('separator_height', SEPARATOR_HEIGHT)
    color = request.form.get('separator_color', '').strip() or SEPARATOR_COLOR
    try:
        return SeparatorStyle.from_hex(height, color)
    except ValueError as e:
        raise BadRequest(str(e)) from None


@app.route('/api/stitch', methods=['POST'])
def stitch():
    """Decode uploaded screenshots, resolve options and stitch them."""
    try:
        keys = sort_by_name(k for k in request.files if k.startswith('image_'))
        files = [request.files[k] for k in keys]

        for f in files:
            if not allowed_file(f.filename or ''):
                return jsonify({'success': False, 'message': f'Unsupported file type: {f.filename}'}), 400

        analysis = _form_analysis()
        suggested = _form_int('suggested_header_height',
                              analysis.common_header_height if analysis else 0)
        crop_height = resolve_header_height(_form_int('manual_header_height'), suggested)
        separator = _separator_from_form()
        remove_indices = _form_indices('remove_indices')

        try:
            files = drop_flagged_images(files, remove_indices)
        except IndexError as e:
            raise BadRequest(f"'remove_indices': {e}") from None
        images = [image_service.decode(f.read(), secure_filename(f.filename)) for f in files]

        logger.info(f"Stitching {len(images)} images (header crop {crop_height}px, "
                    f"separator {separator.height_px}px)")
        result = stitch_to_png(images, crop_height=crop_height, separator=separator)

        return jsonify({
            'success': True,
            'width': result.width,
            'height': result.height,
            'overlaps': result.overlaps,
            'header_height': crop_height,
            'issues': [
                {'type': i.type.value, 'indices': list(i.indices), 'reason': i.reason}
                for i in (analysis.issues if analysis else [])
            ],
            'image': image_service.png_to_data_url(result.png),
            'message': f'Stitched {len(images)} images' if images else 'No images to stitch',
        })

    except BadRequest as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    except DecodeError as e:
        logger.error(f"Decode error: {e}")
        return jsonify({'success': False, 'message': f'Could not read image: {e}'}), 400
    except AllocationError as e:
        logger.error(f"Allocation error: {e}")
        return jsonify({'success': False, 'message': 'Stitched image would be too large'}), 413
    except StitchError as e:
        logger.error(f"Stitch error: {e}")
        return jsonify({'success': False, 'message': f'Error stitching images: {e}'}), 500


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'Screenshot Stitcher API is running',
    })


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    limit = app.config.get('MAX_CONTENT_LENGTH') or MAX_CONTENT_LENGTH
    if limit >= 1024 * 1024:
        size = f'{limit // (1024 * 1024)}MB'
    else:
        size = f'{limit} bytes'
    return jsonify({'success': False, 'message': f'File too large. Maximum size is {size}.'}), 413


@app.errorhandler(400)
def bad_request(e):
    """Handle bad request error."""
    return jsonify({'success': False, 'message': 'Bad request'}), 400


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({'success': False, 'message': 'Internal server error'}), 500


if __name__ == '__main__':
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "5000"))
    logger.info(f"Starting Screenshot Stitcher API on {host}:{port} "
                f"(max upload {MAX_CONTENT_LENGTH // (1024 * 1024)}MB)")
    app.run(host=host, port=port, debug=False)
