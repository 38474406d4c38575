from knowme import db, bcrypt
from flask_login import UserMixin


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class GameSessionRecord(db.Model):
    __tablename__ = 'game_session'
    id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    status = db.Column(db.String(16), nullable=False, default='created')  # created, started, ended
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    # No FK: question rows reference this table already
    current_question_id = db.Column(db.String(36), nullable=True)
    version = db.Column(db.Integer, nullable=False)

    players = db.relationship(
        'SessionPlayer', back_populates='session',
        order_by='SessionPlayer.position', cascade='all, delete-orphan')
    questions = db.relationship(
        'QuestionRecord', back_populates='session',
        order_by='QuestionRecord.sequence_number', cascade='all, delete-orphan')

    # UPDATE ... WHERE version = :loaded_version
    __mapper_args__ = {'version_id_col': version}


class SessionPlayer(db.Model):
    __tablename__ = 'session_player'
    __table_args__ = (db.UniqueConstraint('session_id', 'user_id', name='uq_session_player'),)
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(36), db.ForeignKey('game_session.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    position = db.Column(db.Integer, nullable=False)

    session = db.relationship('GameSessionRecord', back_populates='players')
    user = db.relationship('User')


class QuestionRecord(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.String(36), primary_key=True)
    session_id = db.Column(db.String(36), db.ForeignKey('game_session.id'), nullable=False, index=True)
    text = db.Column(db.String(100), nullable=False)
    is_multiple_answer = db.Column(db.Boolean, nullable=False, default=False)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    sequence_number = db.Column(db.Integer, nullable=False)

    session = db.relationship('GameSessionRecord', back_populates='questions')
    variants = db.relationship(
        'VariantRecord', backref='question',
        order_by='VariantRecord.position', cascade='all, delete-orphan')
    choices = db.relationship(
        'ChoiceRecord', backref='question',
        order_by='ChoiceRecord.id', cascade='all, delete-orphan')
    guesses = db.relationship(
        'GuessRecord', backref='question',
        order_by='GuessRecord.id', cascade='all, delete-orphan')


class VariantRecord(db.Model):
    __tablename__ = 'question_variant'
    id = db.Column(db.String(36), primary_key=True)
    question_id = db.Column(db.String(36), db.ForeignKey('question.id'), nullable=False, index=True)
    label = db.Column(db.String(1), nullable=False)
    text = db.Column(db.String(100), nullable=False)
    position = db.Column(db.Integer, nullable=False)


class ChoiceRecord(db.Model):
    __tablename__ = 'question_choice'
    __table_args__ = (db.UniqueConstraint('question_id', 'user_id', name='uq_question_choice'),)
    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.String(36), db.ForeignKey('question.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    selected_variant_ids = db.Column(db.Text, nullable=False)  # JSON-encoded list of variant ids


class GuessRecord(db.Model):
    __tablename__ = 'question_guess'
    __table_args__ = (
        db.UniqueConstraint('question_id', 'guessing_user_id', 'choice_user_id', name='uq_question_guess'),
    )
    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.String(36), db.ForeignKey('question.id'), nullable=False, index=True)
    guessing_user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    choice_user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    selected_variant_ids = db.Column(db.Text, nullable=False)  # JSON-encoded list of variant ids
