"""
Web interface for Socket Smith.

One Flask app serves one world. The world and its socket engine are
created once and kept on the app for its lifetime.
"""

import logging
from typing import Optional

from flask import Flask, jsonify

from socketsmith.core.config import Config, get_config
from socketsmith.core.world import World
from socketsmith.sockets import SocketEngine, SocketSettings
from .api import sockets_bp

logger = logging.getLogger(__name__)


def create_app(world_path: str, config: Optional[Config] = None) -> Flask:
    """
    Create the Flask app for a world.

    Args:
        world_path: Directory of an initialized world
        config: Configuration (defaults to the global config)

    Returns:
        Flask app with the sockets API registered

    Raises:
        ValueError: If no world exists at world_path
    """
    config = config or get_config()

    app = Flask(__name__)
    app.config['SECRET_KEY'] = config.secret_key
    app.config['WORLD_PATH'] = world_path
    app.config['GM_KEY'] = config.gm_key

    app.world = World.open(world_path)
    app.socket_engine = SocketEngine(
        SocketSettings.from_config(config),
        resolve=app.world.from_uuid,
        event_bus=app.world.event_bus,
    )

    app.register_blueprint(sockets_bp)

    @app.route('/api/world')
    def api_world():
        """World name and actor list."""
        world = app.world
        return jsonify({
            'success': True,
            'name': world.name,
            'actors': [{'id': actor.id, 'name': actor.name, 'uuid': actor.uuid}
                       for actor in world.list_actors()],
        })

    @app.route('/api/events')
    def api_events():
        """Recent socket events, newest first."""
        events = app.world.get_events(limit=50)
        return jsonify({'success': True, 'events': [event.to_dict() for event in events]})

    logger.info(f"Serving world '{app.world.name}' from {world_path}")
    return app


__all__ = ['create_app']
