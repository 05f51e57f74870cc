"""
Main Routes

FLOW OVERVIEW
- /health [GET]
  • JSON health check.
- /api/status [GET]
  • Database reachability and catalog size, for uptime checks.
- /api/metrics [GET]
  • Prometheus exposition.
"""

from datetime import datetime

from flask import Blueprint, jsonify, current_app, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..models import db, Product
from ..utils.prom_metrics import metrics_latest, CONTENT_TYPE_LATEST

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """Health check endpoint"""
    return jsonify({'status': 'healthy', 'timestamp': datetime.utcnow().isoformat()})


@main_bp.route('/api/status')
def status():
    try:
        db.session.execute(text('SELECT 1'))
        product_count = Product.query.count()
        database = 'connected'
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Database status check failed: {str(e)}")
        return jsonify({'status': 'degraded', 'database': 'unavailable'}), 503

    return jsonify({
        'status': 'ok',
        'database': database,
        'products': product_count,
        'timestamp': datetime.utcnow().isoformat(),
    })


@main_bp.route('/api/metrics')
def metrics():
    """Prometheus metrics endpoint."""
    output = metrics_latest()
    return Response(output, mimetype=CONTENT_TYPE_LATEST)
