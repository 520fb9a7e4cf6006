# manage.py
import logging
import os
import subprocess
import sys
import time

from dotenv import load_dotenv

# Load .env before Config reads the environment
load_dotenv()

from config import Config

logger = logging.getLogger(__name__)

SERVICES = ('main', 'proxy', 'registry')

USAGE = "Usage: python manage.py run [main|proxy|registry] | start-all"


def _service_settings(name):
    """Returns (factory, port, service id, display name, description) for a service."""
    import app as app_module

    if name == 'main':
        return (app_module.create_app, Config.MAIN_PORT, app_module.MAIN_SERVICE,
                'TrackIQ', 'Spotify track, album, artist and trend analytics')
    if name == 'proxy':
        return (app_module.create_proxy_app, Config.PROXY_PORT, app_module.PROXY_SERVICE,
                'Spotify Auth Proxy', 'Client-credentials token broker and Spotify Web API proxy')
    if name == 'registry':
        return (app_module.create_registry_app, Config.REGISTRY_PORT, app_module.REGISTRY_SERVICE,
                'Service Registry', 'In-memory service directory')
    raise ValueError(f"Unknown service: {name}")


def run_service(name):
    """Starts one service in the foreground."""
    from app import configure_logging
    from src.infrastructure.registry_client import announce

    factory, port, service_id, display_name, description = _service_settings(name)
    log_file_path = configure_logging(Config.LOG_DIR)
    logger.info("File logging initialized at %s", log_file_path)

    application = factory()
    application.logger.handlers = []
    application.logger.setLevel(logging.INFO)
    application.logger.propagate = True

    if Config.AUTO_REGISTER_SERVICES and name != 'registry':
        base_url = Config.PUBLIC_BASE_URL or f"http://localhost:{port}"
        announce(service_id, display_name, base_url, description)

    logger.info("Starting %s on port %s...", service_id, port)
    application.run(debug=Config.DEBUG, host=Config.HOST, port=port, threaded=True, use_reloader=False)


def start_all():
    """Launches registry, proxy and main as child processes and waits on them."""
    script = os.path.abspath(__file__)
    processes = []
    # Registry first so the others can announce themselves
    for name in ('registry', 'proxy', 'main'):
        print(f"Starting {name} service...")
        processes.append(subprocess.Popen([sys.executable, script, 'run', name]))
        time.sleep(0.5)

    try:
        while all(proc.poll() is None for proc in processes):
            time.sleep(1)
    except KeyboardInterrupt:
        print("Shutting down services...")
    finally:
        for proc in processes:
            if proc.poll() is None:
                proc.terminate()
        for proc in processes:
            proc.wait()

    return max((proc.returncode or 0) for proc in processes)


if __name__ == '__main__':
    if len(sys.argv) > 1:
        command = sys.argv[1]
        if command == 'run':
            target = sys.argv[2] if len(sys.argv) > 2 else 'main'
            if target not in SERVICES:
                print(f"Unknown service: {target}")
                print(USAGE)
                sys.exit(1)
            run_service(target)
        elif command == 'start-all':
            sys.exit(start_all())
        else:
            print(f"Unknown command: {command}")
            print(USAGE)
    else:
        print(f"No command provided. {USAGE}")
