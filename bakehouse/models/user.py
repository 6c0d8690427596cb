from flask_login import UserMixin

from ..extensions import db
from .mixins import TimestampMixin


class User(UserMixin, TimestampMixin, db.Model):
    __tablename__ = 'user'

    ROLE_BAKER = 'panadero'
    ROLE_ADMIN = 'administrador'
    ROLES = (ROLE_BAKER, ROLE_ADMIN)

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    first_name = db.Column(db.String(64))
    last_name = db.Column(db.String(64))
    role = db.Column(db.String(32), nullable=False, default=ROLE_BAKER)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def has_role(self, *roles) -> bool:
        return self.role in roles

    @property
    def is_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN

    def __repr__(self):
        return f'<User {self.username} ({self.role})>'
