from flask import Blueprint, current_app, jsonify, request
from pitchmatch import db
from pitchmatch.models import Player

players = Blueprint('players', __name__)

MAX_NAME_LENGTH = 64
MAX_LEADERBOARD = 100


@players.route('/players', methods=['POST'])
def create_player():
    data = request.get_json(silent=True) or {}
    name = data.get('name')
    name = name.strip() if isinstance(name, str) else ''
    if not name:
        return jsonify({'error': 'Player name is required'}), 400
    if len(name) > MAX_NAME_LENGTH:
        return jsonify({'error': f'Player name must be at most {MAX_NAME_LENGTH} characters'}), 400

    player = Player(name=name)
    db.session.add(player)
    db.session.commit()
    current_app.logger.info(f"[player-created] player={player.id} name={player.name}")
    return jsonify(player.to_dict()), 201


@players.route('/players/leaderboard', methods=['GET'])
def leaderboard():
    limit = request.args.get('limit', default=10, type=int)
    limit = max(1, min(limit, MAX_LEADERBOARD))
    top = Player.query.order_by(Player.score.desc(), Player.name.asc()).limit(limit).all()
    return jsonify([p.to_dict() for p in top])


@players.route('/players/<string:player_id>', methods=['GET'])
def get_player(player_id):
    player = db.get_or_404(Player, player_id)
    return jsonify(player.to_dict())


@players.route('/game/state', methods=['GET'])
def get_game_state():
    # Same payload clients receive with gameStateUpdate
    return jsonify(current_app.extensions['pitchmatch'].game_state())
