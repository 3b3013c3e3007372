import argparse
from pathlib import Path
from typing import List, Optional

# Import configuration management
import sys
sys.path.append(str(Path(__file__).parent.parent))
from config_manager import ConfigManager

from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix

from visitor_engine import AnalyticsStore, StaticLocationResolver, setup_logging
from app.tracking.factory import create_tracking_module
from app.web_analytics.factory import create_web_analytics_module

PROJECT_ROOT = Path(__file__).parent.parent


def create_app(
    config_manager: Optional[ConfigManager] = None,
    data_dir: Optional[Path] = None,
    admin_user_ids: Optional[List[str]] = None
) -> Flask:
    """Create the analytics Flask application.

    Args:
        config_manager: Configuration source, loaded from disk and environment if omitted
        data_dir: Override for the analytics data directory
        admin_user_ids: Override for the admin user ids

    Returns:
        Configured Flask application
    """
    config_manager = config_manager or ConfigManager()
    app_config = config_manager.get_app_config()
    analytics_config = config_manager.get_analytics_config()
    geo_config = config_manager.get_geo_config()
    paths_config = config_manager.get_paths_config()

    app = Flask(__name__)
    app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for   = 1,     # trust 1 hop for X-Forwarded-For
            x_proto = 1,     # trust 1 hop for X-Forwarded-Proto
            x_host  = 1,     # trust 1 hop for X-Forwarded-Host
            x_prefix= 1)     # <-- pay attention to X-Forwarded-Prefix

    # Set up data directory; relative paths are resolved against the project root
    analytics_data_dir = Path(data_dir) if data_dir else PROJECT_ROOT / paths_config.data_dir
    store = AnalyticsStore(analytics_data_dir)

    location_resolver = StaticLocationResolver(
        country=geo_config.default_country,
        country_code=geo_config.default_country_code,
        city=geo_config.default_city,
        enabled=geo_config.enabled
    )

    tracking_module = create_tracking_module(
        store=store,
        session_timeout_minutes=analytics_config.session_timeout_minutes,
        location_resolver=location_resolver
    )
    web_analytics_module = create_web_analytics_module(
        store=store,
        analytics_config=analytics_config,
        admin_user_ids=admin_user_ids if admin_user_ids is not None else app_config.admin_user_ids
    )

    app.register_blueprint(tracking_module["blueprint"])
    app.register_blueprint(web_analytics_module["blueprint"])

    app.extensions["analytics_store"] = store
    app.extensions["page_view_tracker"] = tracking_module["service"]
    app.extensions["web_analytics_service"] = web_analytics_module["service"]

    @app.get("/actuator/health")
    def actuator_health():
        """Health check endpoint for monitoring tools and cloud platforms."""
        return jsonify({
            "status": "UP",
            "service": "visitor-analytics"
        }), 200

    return app


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    # Parse command line arguments
    parser = argparse.ArgumentParser(description="Flask application for visitor analytics")
    parser.add_argument("--port", type=int, help="Port to run the server on")
    parser.add_argument("--host", type=str, help="Host to bind the server to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    config_manager = ConfigManager()
    app_config = config_manager.get_app_config()
    analytics_config = config_manager.get_analytics_config()

    # Override configuration with command line arguments
    if args.port:
        app_config.port = args.port
    if args.host:
        app_config.host = args.host
    if args.debug:
        app_config.debug = args.debug

    setup_logging(app_config.debug)
    app = create_app(config_manager)

    print(f"✅ Storing analytics in {(PROJECT_ROOT / config_manager.get_paths_config().data_dir).resolve()}")
    print(f"📋 Configuration loaded:")
    print(f"   - Session timeout: {analytics_config.session_timeout_minutes} min")
    print(f"   - Live window: {analytics_config.live_window_minutes} min")
    print(f"   - Default period: {analytics_config.default_time_range}")
    print(f"   - Server: {app_config.host}:{app_config.port}")
    app.run(
        host=app_config.host,
        port=app_config.port,
        debug=app_config.debug
    )
