from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, SubmitField
from wtforms.validators import DataRequired, Length, Email, EqualTo, Optional

class LoginForm(FlaskForm):
    """登录表单"""
    email = StringField('Email', validators=[
        DataRequired(message="Please enter your email address"),
        Email(message="Invalid email address")
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message="Please enter your password")
    ])
    submit = SubmitField('Sign In')

class RegisterForm(FlaskForm):
    """注册表单"""
    full_name = StringField('Full name', validators=[Optional(), Length(max=128)])
    email = StringField('Email', validators=[
        DataRequired(), Email()
    ])
    password = PasswordField('Password', validators=[
        DataRequired(), Length(min=6, message="Password must be at least 6 characters")
    ])
    confirm_password = PasswordField('Confirm password', validators=[
        DataRequired(), EqualTo('password', message='Passwords do not match')
    ])
    captcha = StringField('Verification code', validators=[
        DataRequired(message="Please enter the verification code"),
        Length(min=4, max=4, message="The verification code has 4 characters")
    ])
    submit = SubmitField('Create Account')
