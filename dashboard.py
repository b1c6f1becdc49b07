"""
CommunityOS Bot - Web Dashboard
Local JSON endpoints for bot status, chatbot config and leaderboards.
"""

from flask import Flask, request, jsonify
import threading

from models import GameType

app = Flask(__name__)

# Shared state (set by main.py)
services = None
bot_instance = None


def _require_services():
    if services is None:
        return jsonify({'error': 'bot not started'}), 503
    return None


# --- Routes ---

@app.route('/api/status')
def api_status():
    """API endpoint for bot status."""
    missing = _require_services()
    if missing:
        return missing

    online = False
    guilds = 0
    if bot_instance is not None:
        online = bot_instance.client.is_ready()
        guilds = len(bot_instance.client.guilds)

    return jsonify({
        'bot': {
            'name': bot_instance.name if bot_instance else None,
            'online': online,
            'guilds': guilds,
        },
        'chatbot': services.chatbot.get_status(),
        'games': [
            {'game': s.game_type.value, 'channel': s.channel_id, 'state': s.state.value}
            for s in services.games.sessions.values()
        ],
        'pendingWrites': services.write_queue.pending_count,
    })


@app.route('/api/config', methods=['GET'])
def api_config():
    """Current chatbot configuration."""
    missing = _require_services()
    if missing:
        return missing
    return jsonify(services.chatbot_config.data)


@app.route('/api/config', methods=['POST'])
def api_config_update():
    """Update top-level chatbot options. Unknown keys and invalid values are reported back."""
    missing = _require_services()
    if missing:
        return missing

    updates = request.get_json(silent=True)
    if not isinstance(updates, dict):
        return jsonify({'error': 'expected a JSON object'}), 400

    rejected = [key for key, value in updates.items() if not services.chatbot_config.set_global(key, value)]
    return jsonify({'config': services.chatbot_config.data, 'rejected': rejected})


@app.route('/api/leaderboard/<game>')
def api_leaderboard(game):
    """Top players for one game, or the combined ranking for "all"."""
    missing = _require_services()
    if missing:
        return missing

    limit = request.args.get('limit', default=10, type=int)
    if game == 'all':
        return jsonify({'game': 'all', 'entries': services.leaderboard.combined(limit)})

    try:
        game_type = GameType.parse(game)
    except ValueError:
        return jsonify({'error': f'unknown game: {game}'}), 404
    return jsonify({'game': game_type.value, 'entries': services.leaderboard.top(game_type, limit)})


# --- Dashboard Runner ---

def start_dashboard(shared_services=None, bot=None, host='127.0.0.1', port=5000):
    """Start the dashboard in a background thread."""
    global services, bot_instance
    if shared_services is not None:
        services = shared_services
    if bot is not None:
        bot_instance = bot

    # Disable Flask's default logging
    import logging
    log = logging.getLogger('werkzeug')
    log.setLevel(logging.ERROR)

    thread = threading.Thread(
        target=lambda: app.run(host=host, port=port, debug=False, use_reloader=False),
        daemon=True
    )
    thread.start()
    return thread
