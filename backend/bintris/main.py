from flask import Blueprint, jsonify

from bintris.services.games.sessions import sessions

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Bintris game server!', 'active_games': len(sessions)})
