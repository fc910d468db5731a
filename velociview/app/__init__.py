#!/usr/bin/env python3
"""
VelociView Web Application

Flask JSON/image API around the overlay engine: upload a photo and a GPX/TCX
file, get the annotated image back.
"""

import json
import logging
from io import BytesIO

from flask import Flask, jsonify, request, send_file

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from velociview import config
from velociview.lib.composer import ComposeRequest, compose_overlay, load_activity
from velociview.lib.export import (
    build_download_filename,
    encode_image,
    get_mime_and_ext,
    is_activity_file,
    is_image_file,
    normalize_format,
)
from velociview.lib.fields import OVERLAY_FIELD_ORDER, get_field_label
from velociview.lib.fonts import DEFAULT_FONT_FAMILY, GOOGLE_FONTS
from velociview.lib.options import OverlayOptions, coerce_position, parse_number
from velociview.lib.route_map import RouteOptions
from velociview.lib.stats import UnitSystem
from velociview.lib.watermark import WatermarkAssets

app = Flask(__name__)
app.config['SECRET_KEY'] = config.SECRET_KEY
app.config['MAX_CONTENT_LENGTH'] = config.MAX_UPLOAD_MB * 1024 * 1024

watermark_assets = WatermarkAssets(config.WATERMARK_LIGHT, config.WATERMARK_DARK)

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _error(e, status=400):
    return jsonify({
        'success': False,
        'error': str(e),
        'kind': getattr(e, 'kind', 'invalid_request'),
    }), status


def _read_upload(name, check):
    """Read an uploaded file, validating its name/MIME type with check(filename, mimetype)."""
    upload = request.files.get(name)
    if upload is None or not upload.filename:
        raise ValueError(f"Missing '{name}' file")
    if not check(upload.filename, upload.mimetype or ''):
        raise ValueError(f"Unsupported {name} file '{upload.filename}'")
    return upload.filename, upload.read()


def _json_field(name):
    raw = request.form.get(name, '').strip()
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in '{name}': {e}") from None
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a JSON object")
    return data


def _route_options(data):
    """Full-frame route options from {"scale", "position": {x, y}, "color", "lineWidth"}."""
    if data is None:
        return None
    options = RouteOptions()
    if 'scale' in data:
        options.scale = parse_number(data['scale'], 'route scale')
        if options.scale <= 0:
            raise ValueError("Route scale must be greater than 0")
    if 'position' in data:
        x, y = coerce_position(data['position'])
        options.position = (parse_number(x, 'route position.x'),
                            parse_number(y, 'route position.y'))
    if 'color' in data:
        options.color = str(data['color'])
    if 'lineWidth' in data:
        options.line_width = max(0.0, parse_number(data['lineWidth'], 'route line width'))
    return options


@app.route('/api/fields')
def list_fields():
    """Overlay fields in display order."""
    return jsonify([
        {'id': f.value, 'label': get_field_label(f)} for f in OVERLAY_FIELD_ORDER
    ])


@app.route('/api/fonts')
def list_fonts():
    """Font families offered in the UI."""
    return jsonify({'default': DEFAULT_FONT_FAMILY, 'families': GOOGLE_FONTS})


@app.route('/api/stats', methods=['POST'])
def activity_stats():
    """Decode an uploaded activity and return its formatted stats."""
    try:
        filename, data = _read_upload('activity', is_activity_file)
        units = UnitSystem.parse(request.form.get('units', config.DEFAULT_UNITS))
        _, values = load_activity(data, filename, units)
        logger.info(f"Stats for {filename}: {len(values.route_points)} route points")
        return jsonify(values.to_dict())
    except ValueError as e:
        logger.warning(f"Rejected stats request: {e}")
        return _error(e)
    except Exception as e:
        logger.exception(f"Error decoding activity: {e}")
        return jsonify({'success': False, 'error': f'Internal error: {str(e)}'}), 500


@app.route('/api/render', methods=['POST'])
def render():
    """Compose the overlay on an uploaded photo and return the image."""
    try:
        _, photo = _read_upload('photo', is_image_file)
        activity_name, activity = _read_upload('activity', is_activity_file)
        options = _json_field('options')
        overlay = OverlayOptions.from_dict(options) if options else OverlayOptions()
        fmt = normalize_format(request.form.get('format'))

        compose_request = ComposeRequest(
            photo=photo,
            activity=activity,
            activity_filename=activity_name,
            units=UnitSystem.parse(request.form.get('units', config.DEFAULT_UNITS)),
            overlay=overlay,
            route=_route_options(_json_field('route')),
            watermark=request.form.get('watermark', '').strip().lower() in _TRUE_VALUES,
            watermark_assets=watermark_assets,
        )
        result = compose_overlay(compose_request)
    except ValueError as e:
        logger.warning(f"Rejected render request: {e}")
        return _error(e)
    except Exception as e:
        logger.exception(f"Error rendering overlay: {e}")
        return jsonify({'success': False, 'error': f'Internal error: {str(e)}'}), 500

    mime, ext = get_mime_and_ext(fmt)
    filename = build_download_filename('overlay', result.values, ext)
    box = result.box
    logger.info(f"Rendered {filename}: box at ({box.x}, {box.y}) {box.width}x{box.height}")

    response = send_file(BytesIO(encode_image(result.image, fmt)), mimetype=mime,
                         as_attachment=True, download_name=filename)
    response.headers['X-Overlay-Box'] = f"{box.x},{box.y},{box.width},{box.height}"
    return response


@app.errorhandler(413)
def upload_too_large(e):
    return jsonify({
        'success': False,
        'error': f'Upload exceeds {config.MAX_UPLOAD_MB} MB',
        'kind': 'too_large',
    }), 413

