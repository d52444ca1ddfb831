"""
Flask routes for browsing recorded blunders.
"""

from flask import jsonify, request, abort
from web.database import db
from web.models import Position

MAX_LIMIT = 500


def register_routes(app):
    """Register all routes with the Flask app."""

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return {'status': 'ok'}

    @app.route('/api/positions')
    def list_positions():
        """Newest findings first.

        Optional query parameters:
          limit: number of rows (default 50, capped at MAX_LIMIT)
          min_blunder: only findings at least this severe
        """
        limit = request.args.get('limit', 50, type=int)
        limit = max(1, min(limit, MAX_LIMIT))
        min_blunder = request.args.get('min_blunder', type=int)

        query = Position.query
        if min_blunder is not None:
            query = query.filter(Position.blunder >= min_blunder)
        positions = query.order_by(Position.id.desc()).limit(limit).all()

        return jsonify({
            'count': len(positions),
            'positions': [p.to_dict() for p in positions],
        })

    @app.route('/api/positions/<int:position_id>')
    def get_position(position_id):
        """Single finding by id."""
        position = db.session.get(Position, position_id)
        if position is None:
            abort(404)
        return jsonify(position.to_dict())
