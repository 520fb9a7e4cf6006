import os
import logging
from datetime import datetime
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Flask specific imports ---
from flask import Flask, send_from_directory, request, jsonify, g
from flask_cors import CORS

# --- Import our configuration and the service wiring ---
from config import Config
from src.domain.catalog import CatalogAnalyticsService
from src.domain.registry import ServiceDirectory, start_heartbeat
from src.infrastructure.registry_client import ServiceRegistryClient
from src.infrastructure.spotify import SpotifyProxyClient, SpotifyWebApi, TokenBroker
from src.interfaces.http.routes import (
    analytics_bp,
    services_bp,
    spotify_proxy_bp,
    token_bp,
    registry_bp,
    health_bp,
)
from src.observability import configure_structured_logging, metrics_blueprint, init_tracing


logger = logging.getLogger(__name__)

MAIN_SERVICE = 'trackiq'
PROXY_SERVICE = 'spotify-auth'
REGISTRY_SERVICE = 'service-registry'


def configure_logging(log_dir: str) -> str:
    """
    Configure root logging with:
      - FileHandler (INFO+) to a new file per run: log-<service>-YYYY-MM-DD-HH-MM-SS
      - StreamHandler (WARNING+) to console when ENABLE_CONSOLE_LOGS is set
      - Werkzeug/Flask loggers routed to root (no extra console spam)

    Returns the path to the created log file.
    """
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    log_filename = f"log-{timestamp}-{os.getpid()}"
    log_path = os.path.join(log_dir, log_filename)

    root = logging.getLogger()
    root.setLevel(logging.INFO)

    # Preserve structured handlers; remove existing FileHandlers to avoid duplicates
    root.handlers = [h for h in root.handlers if not isinstance(h, logging.FileHandler)]

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # File: INFO and above
    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if Config.ENABLE_CONSOLE_LOGS:
        console_handler = logging.StreamHandler()
        # If console logging is enabled, keep it concise: warnings and above
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    # Quiet Flask/Werkzeug own console handlers; let them propagate to root
    for name in ("werkzeug", "flask.app"):
        _l = logging.getLogger(name)
        _l.setLevel(logging.INFO)
        _l.handlers = []
        _l.propagate = True

    return log_path


def _create_base_app(service_name: str, required_extensions=(), **flask_kwargs) -> Flask:
    """Flask app with the wiring every service shares: config, logging, tracing,
    request ids, CORS, health and metrics."""
    app = Flask(__name__, **flask_kwargs)
    app.config.from_object(Config)
    app.config['SERVICE_NAME'] = service_name
    app.config['REQUIRED_EXTENSIONS'] = tuple(required_extensions)
    configure_structured_logging(app)
    init_tracing(app)

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get('X-Request-ID') or uuid4().hex

    @app.after_request
    def _inject_request_id(response):
        if getattr(g, 'request_id', None):
            response.headers.setdefault('X-Request-ID', g.request_id)
        return response

    allowed_origins = sorted({
        origin.strip()
        for origin in Config.CORS_ALLOWED_ORIGINS
        if origin and origin.strip() and origin.strip() != "*"
    })
    CORS(app, resources={r"/*": {"origins": allowed_origins}})

    app.register_blueprint(metrics_blueprint)
    app.register_blueprint(health_bp)
    return app


def create_app(proxy_client=None, registry_client=None):
    """Main aggregation service: analytics endpoints plus the static UI."""
    public_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'public')
    app = _create_base_app(
        MAIN_SERVICE,
        required_extensions=('catalog_analytics',),
        static_folder=public_dir,
        static_url_path='',
    )

    proxy_client = proxy_client or SpotifyProxyClient(base_url=Config.SPOTIFY_AUTH_BASE_URL)
    app.extensions['catalog_analytics'] = CatalogAnalyticsService(proxy=proxy_client)
    app.extensions['registry_client'] = registry_client or ServiceRegistryClient(
        base_url=Config.SERVICE_REGISTRY_BASE_URL
    )

    app.register_blueprint(analytics_bp)
    app.register_blueprint(services_bp)

    @app.route('/')
    def landing_page():
        if os.path.exists(os.path.join(public_dir, 'index.html')):
            return send_from_directory(public_dir, 'index.html')
        return jsonify({"status": "ok", "service": MAIN_SERVICE}), 200

    app.logger.info("TrackIQ main service wired to Spotify proxy at %s",
                    getattr(proxy_client, 'base_url', 'n/a'))
    return app


def create_proxy_app(spotify_api=None):
    """Spotify proxy + token broker service."""
    app = _create_base_app(PROXY_SERVICE, required_extensions=('spotify_api',))

    if spotify_api is None:
        broker = TokenBroker(
            client_id=Config.SPOTIFY_CLIENT_ID,
            client_secret=Config.SPOTIFY_CLIENT_SECRET,
        )
        if not broker.has_credentials:
            app.logger.warning("Spotify client ID or client secret not found in environment variables.")
        spotify_api = SpotifyWebApi(token_broker=broker)
    app.extensions['spotify_api'] = spotify_api

    app.register_blueprint(spotify_proxy_bp)
    app.register_blueprint(token_bp)
    return app


def create_registry_app(directory=None, heartbeat_seconds=None):
    """In-memory service directory."""
    app = _create_base_app(REGISTRY_SERVICE, required_extensions=('service_directory',))
    directory = directory or ServiceDirectory(instance_name=Config.REGISTRY_INSTANCE_NAME)
    app.extensions['service_directory'] = directory

    interval = Config.REGISTRY_HEARTBEAT_SECONDS if heartbeat_seconds is None else heartbeat_seconds
    app.extensions['registry_heartbeat'] = start_heartbeat(directory, interval)

    app.register_blueprint(registry_bp)
    return app


if __name__ == '__main__':
    debug_mode = bool(Config.DEBUG)
    if not debug_mode or os.environ.get('WERKZEUG_RUN_MAIN') == 'true':
        log_file_path = configure_logging(Config.LOG_DIR)
        logger.info("File logging initialized at %s", log_file_path)

    app = create_app()
    # Route app.logger through root handlers, keep levels consistent
    app.logger.handlers = []
    app.logger.setLevel(logging.INFO)
    app.logger.propagate = True
    logger.info("Starting TrackIQ main service on port %s...", Config.MAIN_PORT)
    app.run(debug=Config.DEBUG, host=Config.HOST, port=Config.MAIN_PORT, threaded=True)
