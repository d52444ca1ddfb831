"""
SQLAlchemy models for discovered tactics.
"""

from datetime import datetime
from web.database import db


class Position(db.Model):
    """A position where the side to move played a confirmed blunder."""
    __tablename__ = 'positions'

    id = db.Column(db.BigInteger().with_variant(db.Integer, 'sqlite'), primary_key=True)
    fen = db.Column(db.String(255), nullable=False)
    sm = db.Column(db.String(10), nullable=False)  # Move actually played
    cp = db.Column(db.Integer)  # Centipawns after the played move, mover's perspective
    dm = db.Column(db.Integer)  # Mate distance after the played move (negative = mover gets mated)
    bm = db.Column(db.String(10))  # Engine's best move
    blunder = db.Column(db.Integer)  # Severity: centipawn drop, or 10000 for a short mate
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('fen', 'sm', name='uq_positions_fen_sm'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'fen': self.fen,
            'sm': self.sm,
            'cp': self.cp,
            'dm': self.dm,
            'bm': self.bm,
            'blunder': self.blunder,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Position {self.id}: {self.sm} ({self.blunder})>'
