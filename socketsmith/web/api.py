"""
Sockets API Blueprint.

Endpoints:
- POST   /api/session                          - Sign in     body: {"user_id", "user_name", "role", "gm_key"}
- GET    /api/session                          - Current user
- DELETE /api/session                          - Sign out
- GET    /api/items/<uuid>/sockets             - List slots (?snapshots=1 keeps gem snapshots, ?hidden=0 drops hidden slots)
- GET    /api/items/<uuid>/gems                - List socketed gems (same query options)
- POST   /api/items/<uuid>/sockets             - Add a slot        body: {"hidden": false}
- DELETE /api/items/<uuid>/sockets/<idx>       - Remove a slot
- POST   /api/items/<uuid>/sockets/<idx>/hidden - Toggle a slot's hidden flag
- POST   /api/items/<uuid>/sockets/<idx>/gem   - Socket a gem      body: {"source": <uuid or drag payload>}
- DELETE /api/items/<uuid>/sockets/<idx>/gem   - Unsocket the gem

The acting user lives in the signed Flask session. Roles up to TRUSTED may
be claimed freely; ASSISTANT and GAMEMASTER require the world's GM_KEY and
are refused when none is configured. Requests without a session act as
role NONE.
"""

import hmac
import logging
from flask import Blueprint, current_app, jsonify, request, session

from socketsmith.core.models import User, UserRole
from socketsmith.core.result import ErrorCode, Result
from socketsmith.sockets.queries import get_item_gems, get_item_slots

logger = logging.getLogger(__name__)

sockets_bp = Blueprint('sockets', __name__)

_STATUS_BY_CODE = {
    ErrorCode.PERMISSION_DENIED.value: 403,
    ErrorCode.DOCUMENT_NOT_FOUND.value: 404,
}

_TRUE_ARGS = ('1', 'true', 'yes')


def _engine():
    return current_app.socket_engine


def _world():
    return current_app.world


def _get_host(item_uuid: str):
    doc = _world().from_uuid(item_uuid)
    return doc if getattr(doc, 'document_name', None) == 'Item' else None


def _request_user() -> User:
    """The signed-in user, or an anonymous user with role NONE."""
    user = session.get('user')
    if not user:
        return User(id='anonymous', name='Anonymous', role=UserRole.NONE)
    return User(id=user['id'], name=user['name'], role=UserRole(user['role']))


def _gm_key_matches(offered) -> bool:
    expected = current_app.config.get('GM_KEY')
    if not expected or not isinstance(offered, str):
        return False
    return hmac.compare_digest(offered.encode(), expected.encode())


def _query_flag(name: str, default: bool) -> bool:
    value = request.args.get(name)
    if value is None:
        return default
    return value.lower() in _TRUE_ARGS


def _respond(result: Result):
    if result.success:
        return jsonify(result.to_dict())
    return jsonify(result.to_dict()), _STATUS_BY_CODE.get(result.error_code, 400)


def _not_found(item_uuid: str):
    return _respond(Result.fail(f"Item {item_uuid} not found", ErrorCode.DOCUMENT_NOT_FOUND))


# ========== Session ==========

@sockets_bp.route('/api/session', methods=['POST'])
def api_sign_in():
    """
    JSON API: Sign in as a user.

    Request body:
        {"user_id": "gm", "user_name": "Game Master", "role": "GAMEMASTER", "gm_key": "..."}
    """
    body = request.get_json(silent=True) or {}
    try:
        role = UserRole.parse(body.get('role', UserRole.PLAYER))
    except ValueError as e:
        return _respond(Result.fail(str(e), ErrorCode.INVALID_INPUT))

    if role >= UserRole.ASSISTANT and not _gm_key_matches(body.get('gm_key')):
        logger.warning(f"Refused {role.name} sign-in for {body.get('user_id')}")
        return _respond(Result.fail(f"Signing in as {role.name} requires the GM key",
                                    ErrorCode.PERMISSION_DENIED))

    user = {
        'id': str(body.get('user_id') or 'anonymous'),
        'name': str(body.get('user_name') or 'Anonymous'),
        'role': int(role),
    }
    session['user'] = user
    logger.info(f"{user['name']} signed in as {role.name}")
    return jsonify({'success': True, 'user': dict(user, role=role.name)})


@sockets_bp.route('/api/session', methods=['GET'])
def api_current_user():
    user = _request_user()
    return jsonify({'success': True,
                    'user': {'id': user.id, 'name': user.name, 'role': user.role.name}})


@sockets_bp.route('/api/session', methods=['DELETE'])
def api_sign_out():
    session.pop('user', None)
    return jsonify({'success': True})


# ========== Sockets ==========

@sockets_bp.route('/api/items/<item_uuid>/sockets', methods=['GET'])
def api_list_slots(item_uuid: str):
    """
    JSON API: Get every slot of an item.

    Returns:
        {"success": true, "slots": [{"slotIndex": 0, "hasGem": false, "hidden": false, "slot": {...}}, ...]}
    """
    host = _get_host(item_uuid)
    if host is None:
        return _not_found(item_uuid)
    slots = get_item_slots(host, _query_flag('snapshots', False),
                           include_hidden=_query_flag('hidden', True))
    return jsonify({'success': True, 'slots': slots})


@sockets_bp.route('/api/items/<item_uuid>/gems', methods=['GET'])
def api_list_gems(item_uuid: str):
    """JSON API: Get the gems socketed into an item."""
    host = _get_host(item_uuid)
    if host is None:
        return _not_found(item_uuid)
    gems = get_item_gems(host, _query_flag('snapshots', False),
                         include_hidden=_query_flag('hidden', True))
    return jsonify({'success': True, 'gems': gems})


@sockets_bp.route('/api/items/<item_uuid>/sockets', methods=['POST'])
def api_add_slot(item_uuid: str):
    host = _get_host(item_uuid)
    if host is None:
        return _not_found(item_uuid)
    body = request.get_json(silent=True) or {}
    try:
        return _respond(_engine().add_slot(host, user=_request_user(),
                                           hidden=body.get('hidden') is True))
    except Exception as e:
        logger.error(f"Error adding socket to {item_uuid}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@sockets_bp.route('/api/items/<item_uuid>/sockets/<int:idx>', methods=['DELETE'])
def api_remove_slot(item_uuid: str, idx: int):
    host = _get_host(item_uuid)
    if host is None:
        return _not_found(item_uuid)
    try:
        return _respond(_engine().remove_slot(host, idx, user=_request_user()))
    except Exception as e:
        logger.error(f"Error removing socket {idx} from {item_uuid}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@sockets_bp.route('/api/items/<item_uuid>/sockets/<int:idx>/hidden', methods=['POST'])
def api_toggle_hidden(item_uuid: str, idx: int):
    host = _get_host(item_uuid)
    if host is None:
        return _not_found(item_uuid)
    try:
        return _respond(_engine().toggle_hidden(host, idx, user=_request_user()))
    except Exception as e:
        logger.error(f"Error toggling socket {idx} of {item_uuid}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@sockets_bp.route('/api/items/<item_uuid>/sockets/<int:idx>/gem', methods=['POST'])
def api_add_gem(item_uuid: str, idx: int):
    """
    JSON API: Socket a gem.

    Request body:
        {"source": "Actor.abc.Item.def"}  or  {"source": {"type": "Item", "uuid": "..."}}
    """
    host = _get_host(item_uuid)
    if host is None:
        return _not_found(item_uuid)
    body = request.get_json(silent=True) or {}
    try:
        return _respond(_engine().add_gem(host, idx, body.get('source')))
    except Exception as e:
        logger.error(f"Error socketing into {item_uuid} slot {idx}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


@sockets_bp.route('/api/items/<item_uuid>/sockets/<int:idx>/gem', methods=['DELETE'])
def api_remove_gem(item_uuid: str, idx: int):
    host = _get_host(item_uuid)
    if host is None:
        return _not_found(item_uuid)
    try:
        return _respond(_engine().remove_gem(host, idx))
    except Exception as e:
        logger.error(f"Error unsocketing {item_uuid} slot {idx}: {e}", exc_info=True)
        return jsonify({'success': False, 'error': str(e)}), 500


__all__ = ['sockets_bp']
