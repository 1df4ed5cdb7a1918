#!/usr/bin/env python3
"""
Watermark Eraser API Server
One upload → one cleaned image.  Every request is processed independently;
nothing is kept between requests.
"""

import os
import logging
import base64
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

from watermark_eraser.models.engine_config import EngineConfig
from watermark_eraser.models.pixel_buffer import PixelBuffer
from watermark_eraser.pipeline.watermark_remover import remove_watermarks
from watermark_eraser.repositories.image_repository import ImageRepository

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,gif,bmp,webp").split(","))
MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "20"))
MAX_CONTENT_LENGTH = MAX_UPLOAD_SIZE_MB * 1024 * 1024

app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

image_repository = ImageRepository()

logger = logging.getLogger(__name__)


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def buffer_to_base64(buffer: PixelBuffer) -> str:
    """Encode a PixelBuffer as a PNG data URL for JSON responses."""
    png_bytes = image_repository.encode(buffer, "PNG")
    base64_string = base64.b64encode(png_bytes).decode('utf-8')
    return f"data:image/png;base64,{base64_string}"


@app.route('/api/process', methods=['POST'])
def process_image():
    """Detect and remove watermarks from one uploaded image."""
    if 'image' not in request.files:
        return jsonify({'success': False, 'error': 'No image provided'}), 400

    file = request.files['image']
    if file.filename == '':
        return jsonify({'success': False, 'error': 'No file selected'}), 400

    filename = secure_filename(file.filename)
    if not allowed_file(filename):
        return jsonify({'success': False, 'error': f'Unsupported file type: {filename}'}), 400

    try:
        buffer = image_repository.decode(file.read())
    except ValueError as e:
        logger.warning(f"Upload {filename} could not be decoded: {e}")
        return jsonify({'success': False, 'error': 'Failed to load image'}), 400

    logger.info(f"Processing {filename}: {buffer.width}x{buffer.height}")

    # A fresh config per request; no state is shared between runs
    result = remove_watermarks(buffer, EngineConfig.from_env())

    body = result.to_dict()
    if not result.success:
        return jsonify(body), 422

    try:
        body['processed_image'] = buffer_to_base64(result.output)
    except Exception as e:
        logger.error(f"Encoding error for {filename}: {e}")
        return jsonify({'success': False, 'error': 'Error encoding processed image'}), 500

    return jsonify(body)


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'Watermark Eraser API is running',
    })


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return jsonify({'success': False, 'error': f'File too large. Maximum size is {MAX_UPLOAD_SIZE_MB}MB.'}), 413


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({'success': False, 'error': 'Internal server error'}), 500


if __name__ == '__main__':
    print("🚀 Starting Watermark Eraser API Server...")
    print(f"🔧 Max upload size: {MAX_UPLOAD_SIZE_MB}MB")
    print("🌐 CORS enabled for frontend communication")
    print("📋 Endpoints:")
    print("   POST /api/process")
    print("   GET  /api/health")
    print("="*60)

    app.run(host=os.getenv("API_HOST", "0.0.0.0"), port=int(os.getenv("API_PORT", "5000")), debug=False)
