import logging

from flask import Flask, jsonify, request
from flask_cors import CORS

from config import Settings, load_settings
from grading import process_document
from inference import build_client

log = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = 'An error occurred while processing the PDF.'


def configure_logging(level: str = 'INFO') -> None:
    logging.basicConfig(
        level=level,
        format='[%(asctime)s] [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


def create_app(settings: Settings, client) -> Flask:
    """
    Builds the Flask app around one shared inference client
    Returns: Flask application
    """
    app = Flask(__name__)
    if settings.max_upload_mb:
        app.config['MAX_CONTENT_LENGTH'] = settings.max_upload_mb * 1024 * 1024
    CORS(app, origins=settings.cors_origins)

    @app.route('/upload', methods=['POST'])
    def upload():
        # parsing the form here lets an oversized upload keep Flask's 413
        files = request.files
        try:
            upload_file = files['pdf']
            buffer = upload_file.read()
            log.info(f"Received upload {upload_file.filename!r} ({len(buffer)} bytes)")

            outcome = process_document(
                buffer,
                client,
                dpi=settings.render_dpi,
                image_format=settings.image_format,
            )
        except Exception:
            log.exception('Error while grading uploaded PDF')
            return GENERIC_ERROR_MESSAGE, 500, {'Content-Type': 'text/plain; charset=utf-8'}

        timings = outcome.timings.as_strings()
        log.info(
            f"Graded {outcome.page_count} pages in {len(outcome.results)} groups "
            f"(conversion {timings['conversion']}s, analysis {timings['analysis']}s, "
            f"aggregation {timings['aggregation']}s)"
        )

        body = outcome.evaluation.model_dump()
        if settings.include_diagnostics:
            body['results'] = outcome.results
            body['time'] = timings
        return jsonify(body), 200

    return app


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    client = build_client(settings)
    app = create_app(settings, client)
    log.info(f"Server is running on port {settings.port}")
    app.run(host='0.0.0.0', port=settings.port)


if __name__ == '__main__':
    main()
