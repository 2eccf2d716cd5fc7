"""DataFlow Notify: in-app and desktop notification service.

Usage:
    python main.py              # Start on 127.0.0.1:8740
    python main.py --lan        # Start on 0.0.0.0:8740 (LAN access)
    python main.py --port 9000  # Custom port
    python main.py --no-webview # Disable embedded desktop window
"""

from __future__ import annotations

import argparse
import errno
import logging
import socket
import threading
import time
import webbrowser
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlencode

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from dataflow_notify.api.routes import api_router
from dataflow_notify.core.app_meta import APP_NAME, APP_VERSION
from dataflow_notify.core.config import load_config
from dataflow_notify.core.desktop_shell import (
    DesktopShell,
    has_system_tray_support,
    has_webview_support,
)
from dataflow_notify.core.native_bridge import PermissionPrompt
from dataflow_notify.core.prompts import ask_native_permission
from dataflow_notify.core.runtime_paths import get_bundle_root
from dataflow_notify.core.session import NotificationSession

WEB_DIR = get_bundle_root() / "dataflow_notify" / "web"

_logger = logging.getLogger("dataflow_notify")


def create_app(
    session: NotificationSession | None = None,
    *,
    permission_prompt: PermissionPrompt | None = None,
) -> FastAPI:
    """Build the app; without *session* one is created per lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        active = session
        if active is None:
            active = NotificationSession(permission_prompt=permission_prompt)
        active.start()
        app.state.session = active
        try:
            yield
        finally:
            active.close()
            app.state.session = None

    app = FastAPI(
        title=APP_NAME,
        description="Notification center, toasts and desktop notifications",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    if WEB_DIR.exists():
        app.mount("/static", StaticFiles(directory=str(WEB_DIR)), name="static")

        @app.get("/")
        async def serve_index():
            return FileResponse(str(WEB_DIR / "index.html"))

    return app


app = create_app(permission_prompt=ask_native_permission)


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _is_port_occupied(host: str, port: int) -> bool:
    """Check whether the startup TCP port is already occupied."""
    bind_host = "0.0.0.0" if host in {"0.0.0.0", "::"} else host
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        try:
            probe.bind((bind_host, port))
            return False
        except OSError as exc:
            if exc.errno == getattr(errno, "EADDRINUSE", None):
                return True
            if exc.errno == 10048:
                return True
            return False


def _ensure_startup_port_available(host: str, port: int) -> None:
    """Abort startup early when the target port is occupied."""
    if not _is_port_occupied(host, port):
        return

    _logger.error(
        "Port %d on %s is already in use; stop the other process or pass --port",
        port,
        host,
    )
    raise SystemExit(1)


def _build_local_web_base_url(host: str, port: int) -> str:
    """Return browser-friendly local base URL for startup links."""
    browser_host = "127.0.0.1" if host in {"0.0.0.0", "::"} else host
    return f"http://{browser_host}:{port}"


def _start_uvicorn_in_background(
    host: str, port: int
) -> tuple[uvicorn.Server, threading.Thread]:
    """Start uvicorn server on background thread and wait for readiness."""
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
    server = uvicorn.Server(config)
    thread = threading.Thread(
        target=server.run,
        daemon=True,
        name="embedded-uvicorn-server",
    )
    thread.start()

    deadline = time.time() + 15
    while time.time() < deadline:
        if getattr(server, "started", False):
            return server, thread

        if not thread.is_alive():
            break

        time.sleep(0.05)

    server.should_exit = True
    raise RuntimeError("Server failed to start; cannot open the desktop window")


def _stop_uvicorn_background(server: uvicorn.Server, thread: threading.Thread) -> None:
    """Stop background uvicorn server gracefully."""
    server.should_exit = True
    if thread.is_alive():
        thread.join(timeout=5)


def _open_in_browser(url: str, delay_seconds: float = 0.9) -> None:
    """Open the WebUI in the default browser after a short delay."""

    def _worker() -> None:
        if delay_seconds > 0:
            time.sleep(delay_seconds)
        try:
            webbrowser.open_new_tab(url)
        except Exception:
            _logger.warning("Could not open browser at %s", url)

    threading.Thread(
        target=_worker,
        daemon=True,
        name="startup-browser-opener",
    ).start()


def main() -> None:
    parser = argparse.ArgumentParser(description=f"{APP_NAME} Server")
    parser.add_argument("--lan", action="store_true", help="Listen on 0.0.0.0")
    parser.add_argument("--host", default=None, help="Bind address")
    parser.add_argument("--port", type=int, default=None, help="Server port")
    parser.add_argument(
        "--no-webview",
        action="store_true",
        help="Do not open the embedded desktop window; use the browser",
    )
    args = parser.parse_args()

    _configure_logging()
    cfg = load_config()

    server_cfg = cfg.get("server", {})
    launch_section = cfg.get("launch")
    launch_cfg = launch_section if isinstance(launch_section, dict) else {}

    server_token_raw = server_cfg.get("token", "")
    server_token = server_token_raw.strip() if isinstance(server_token_raw, str) else ""

    host = args.host or server_cfg.get("host", "127.0.0.1")
    if args.lan:
        host = "0.0.0.0"
    try:
        port = int(args.port or server_cfg.get("port", 8740))
    except (TypeError, ValueError):
        port = 8740

    _ensure_startup_port_available(host, port)

    app.state.runtime_host = host
    app.state.runtime_port = port

    local_web_base_url = _build_local_web_base_url(host, port)
    webview_available = has_webview_support()
    use_desktop_shell = (
        not args.no_webview
        and bool(launch_cfg.get("use_desktop_window", True))
        and webview_available
    )
    enable_tray_on_start = bool(launch_cfg.get("enable_tray_on_start", True))
    open_webui_on_start = bool(launch_cfg.get("open_webui_on_start", False))
    tray_supported = has_system_tray_support()
    ui_mode_text = "desktop window" if use_desktop_shell else "browser"

    print(f"""
╔══════════════════════════════════════════════╗
║  {APP_NAME} v{APP_VERSION:<29}║
╠══════════════════════════════════════════════╣
║  UI mode:  {ui_mode_text:<34}║
║  WebUI:    {local_web_base_url:<34}║
║  API docs: {local_web_base_url + '/docs':<34}║""")
    if server_token:
        masked = server_token[:4] + "*" * min(8, max(0, len(server_token) - 4))
        print(f"║  Auth:     Token {masked}")
    else:
        print("║  Auth:     disabled")
    print(f"║  Tray:     {'on' if enable_tray_on_start and tray_supported else 'off'}")
    if not args.no_webview and not webview_available:
        print("║  Note:     pywebview not installed, using browser mode")
    if enable_tray_on_start and not tray_supported:
        print("║  Note:     pystray/Pillow not installed, tray disabled")
    print("╚══════════════════════════════════════════════╝")
    print()

    if host == "0.0.0.0" and not server_token:
        _logger.warning(
            "LAN access is enabled without an API token; any device on the "
            "network can read and dispatch notifications"
        )

    if use_desktop_shell:
        try:
            server, server_thread = _start_uvicorn_in_background(host, port)
        except RuntimeError as exc:
            _logger.warning("%s; falling back to browser mode", exc)
        else:
            session = app.state.session
            shell = DesktopShell(
                registry=session.registry,
                presence=session.presence,
                enable_tray=enable_tray_on_start,
            )
            desktop_start_url = local_web_base_url
            if server_token:
                desktop_start_url += "/?" + urlencode({"token": server_token})
            opened = shell.open(
                desktop_start_url, title=f"{APP_NAME} v{APP_VERSION}"
            )
            _stop_uvicorn_background(server, server_thread)
            if opened:
                return

            _logger.warning("Desktop window failed to open; falling back to browser mode")

    if open_webui_on_start:
        _open_in_browser(local_web_base_url)

    uvicorn.run(
        app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
