"""Flask sandbox for local self-play matches.

Architecture:
- API Layer (app.py): Routes HTTP, validation inputs
- Service Layer (services/): orchestration referee + agents
- Domain Layer (agent/, referees/, game_sdk): pathfinding, targeting, rules

Configuration via env vars:
  - SECRET_KEY (default 'dev-secret-key-change-in-production')
  - PACBOT_LOG_LEVEL (default 'INFO')
"""
import logging
import os

from flask import Flask, jsonify, request
from flask_cors import CORS

from services.match_service import MatchService

logger = logging.getLogger(__name__)

# Integer parameters accepted by POST /api/matches
MATCH_INT_PARAMS = ('width', 'height', 'pacs_per_player', 'num_super_pellets', 'max_turns', 'seed')


def create_app(match_service: MatchService = None) -> Flask:
    app = Flask(__name__, static_folder=None)
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    CORS(app, origins='*', allow_headers=['Content-Type'])

    service = match_service or MatchService()
    app.extensions['match_service'] = service

    @app.route('/api/health')
    def health():
        return jsonify({'ok': True, 'matches': len(service.active_matches)})

    @app.route('/api/matches', methods=['POST'])
    def create_match():
        """Crée un match self-play. Body: init_params du referee."""
        body = request.get_json(silent=True) or {}
        params = {}
        try:
            for key in MATCH_INT_PARAMS:
                if body.get(key) is not None:
                    params[key] = int(body[key])
            if 'fog_enabled' in body:
                params['fog_enabled'] = bool(body['fog_enabled'])
            if 'wrap' in body:
                params['wrap'] = bool(body['wrap'])
            if body.get('rows') is not None:
                rows = body['rows']
                if not isinstance(rows, list) or not all(isinstance(r, str) for r in rows):
                    raise ValueError('rows must be a list of strings')
                params['rows'] = rows
            result = service.create_match(params)
        except (TypeError, ValueError) as e:
            return jsonify({'error': str(e)}), 400
        except Exception:
            logger.exception('Failed to create match')
            return jsonify({'error': 'Internal server error'}), 500
        return jsonify(result), 201

    @app.route('/api/matches/<match_id>', methods=['GET'])
    def get_match(match_id):
        match = service.get_match(match_id)
        if match is None:
            return jsonify({'error': 'Match not found'}), 404
        ref = match['ref']
        return jsonify({'match_id': match_id, 'state': ref.get_state(), 'finished': ref.is_finished()})

    @app.route('/api/matches/<match_id>/step', methods=['POST'])
    def step_match(match_id):
        body = request.get_json(silent=True) or {}
        try:
            turns = int(body.get('turns', 1))
            result = service.step_match(match_id, turns)
        except KeyError:
            return jsonify({'error': 'Match not found'}), 404
        except (TypeError, ValueError) as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            logger.exception('Error in step_match for match_id=%s', match_id)
            return jsonify({'error': 'internal error', 'detail': str(e)}), 500
        return jsonify(result)

    @app.route('/api/matches/<match_id>/history')
    def get_history(match_id):
        try:
            history = service.get_history(match_id)
        except KeyError:
            return jsonify({'error': 'Match not found'}), 404
        return jsonify({'history': history})

    return app


if __name__ == '__main__':
    # Configure basic logging so INFO logs appear in the Flask console by default
    logging.basicConfig(level=os.environ.get('PACBOT_LOG_LEVEL', 'INFO').upper(),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    logging.getLogger('werkzeug').setLevel(logging.INFO)
    create_app().run(host='127.0.0.1', port=int(os.environ.get('PORT', '5000')))
