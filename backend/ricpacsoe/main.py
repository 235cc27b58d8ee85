from flask import Blueprint, jsonify
from ricpacsoe import get_registry

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Ric Pac Soe game server!'})

@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'rooms': len(get_registry())})
