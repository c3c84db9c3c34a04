"""
Authentication forms.
"""
from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField
from wtforms.validators import DataRequired, Length


class LoginForm(FlaskForm):
    """Credentials forwarded to the backend's login endpoint."""

    email = StringField(
        'Email',
        validators=[
            DataRequired(message='Email is required'),
            Length(max=255)
        ],
        render_kw={'placeholder': 'you@example.com', 'autocomplete': 'username'}
    )

    password = PasswordField(
        'Password',
        validators=[DataRequired(message='Password is required')],
        render_kw={'autocomplete': 'current-password'}
    )
