from flask import Blueprint, jsonify
from quizroom import get_engine

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the live quiz server!'})

@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'rooms': len(get_engine().registry)})
